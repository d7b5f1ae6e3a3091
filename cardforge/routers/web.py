"""Web routes: topic form, dashboard, flashcard viewer, quiz runner. Jinja2 templates."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from cardforge.core.config import BASE_DIR
from cardforge.core.errors import AppError, InvalidInput, PersistenceError
from cardforge.core.security import sign_quiz_state, verify_quiz_state
from cardforge.dependencies import get_current_user_optional, get_generator, get_store
from cardforge.services import learning
from cardforge.services.generator import ContentGenerator
from cardforge.services.identity import AuthenticatedUser
from cardforge.services.learning import handler_boundary
from cardforge.services.store import Store
from cardforge.services.validation import validate_topic
from cardforge.services.viewstate import (
    COMPLETED,
    FlashcardViewer,
    InvalidTransition,
    QuizRunner,
    TopicSubmission,
)

logger = logging.getLogger(__name__)

router = APIRouter()
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

OptionalUser = Annotated[AuthenticatedUser | None, Depends(get_current_user_optional)]


def _login_redirect(request: Request) -> RedirectResponse:
    return RedirectResponse(request.url_for("login_get"), status_code=303)


def _error_page(request: Request, user, message: str, status_code: int = 400):
    return templates.TemplateResponse(
        request,
        "error.html",
        {"current_user": user, "message": message},
        status_code=status_code,
    )


# ---------- topic form ----------

@router.get("/", response_class=HTMLResponse)
async def home(request: Request, current_user: OptionalUser):
    return templates.TemplateResponse(
        request,
        "home.html",
        {"current_user": current_user, "form": TopicSubmission(), "topic": ""},
    )


@router.post("/", response_class=HTMLResponse)
async def home_post(
    request: Request,
    current_user: OptionalUser,
    store: Annotated[Store, Depends(get_store)],
    generator: Annotated[ContentGenerator, Depends(get_generator)],
    topic: Annotated[str, Form()] = "",
):
    if current_user is None:
        return _login_redirect(request)

    form = TopicSubmission()
    form.submit()
    try:
        text = validate_topic({"topic": topic})
        with handler_boundary("Error submitting topic and generating flashcards"):
            created, _ = await learning.submit_topic(store, generator, current_user.id, text)
    except AppError as e:
        form.fail(e.message)
        return templates.TemplateResponse(
            request,
            "home.html",
            {"current_user": current_user, "form": form, "topic": topic},
            status_code=e.status_code,
        )

    form.succeed(created.id)
    return RedirectResponse(
        request.url_for("flashcards_page", topic_id=form.topic_id), status_code=303
    )


# ---------- dashboard ----------

@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    current_user: OptionalUser,
    store: Annotated[Store, Depends(get_store)],
    generator: Annotated[ContentGenerator, Depends(get_generator)],
):
    """Topics, scores and recommendations.

    The first visit with topics but no stored recommendations generates a batch.
    """
    if current_user is None:
        return _login_redirect(request)

    error = ""
    recommendations_error = ""
    try:
        data = await learning.load_dashboard(request.app.state.session_factory, current_user.id)
    except PersistenceError as e:
        logger.error("Dashboard fetch failed: %s", e.details or e.message)
        data = learning.DashboardData()
        error = "Failed to fetch data"

    if not error and data.topics and not data.recommendations:
        try:
            with handler_boundary("Error generating recommendations"):
                items = await learning.generate_recommendations(store, generator, current_user.id)
            data.recommendations = [i.model_dump() for i in items]
        except AppError as e:
            recommendations_error = e.message

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "current_user": current_user,
            "data": data,
            "error": error,
            "recommendations_error": recommendations_error,
        },
    )


@router.post("/dashboard/recommendations", response_class=RedirectResponse)
async def refresh_recommendations(
    request: Request,
    current_user: OptionalUser,
    store: Annotated[Store, Depends(get_store)],
    generator: Annotated[ContentGenerator, Depends(get_generator)],
):
    """Generate a fresh batch, then show it on the dashboard."""
    if current_user is None:
        return _login_redirect(request)

    try:
        with handler_boundary("Error generating recommendations"):
            await learning.generate_recommendations(store, generator, current_user.id)
    except AppError as e:
        return _error_page(request, current_user, e.message, e.status_code)

    return RedirectResponse(request.url_for("dashboard"), status_code=303)


# ---------- flashcards ----------

@router.get("/flashcards/{topic_id}", response_class=HTMLResponse)
async def flashcards_page(
    request: Request,
    topic_id: str,
    current_user: OptionalUser,
    store: Annotated[Store, Depends(get_store)],
    generator: Annotated[ContentGenerator, Depends(get_generator)],
    index: int = 0,
    flipped: bool = False,
):
    if current_user is None:
        return _login_redirect(request)

    try:
        topic = await store.get_topic(current_user.id, topic_id)
        with handler_boundary("Error generating flashcards"):
            cards = await learning.get_or_generate_flashcards(
                store, generator, current_user.id, topic_id
            )
    except AppError as e:
        return _error_page(request, current_user, e.message, e.status_code)

    viewer = FlashcardViewer(count=len(cards), index=index, flipped=flipped)
    return templates.TemplateResponse(
        request,
        "flashcards.html",
        {
            "current_user": current_user,
            "topic": topic,
            "cards": cards,
            "card": cards[viewer.index] if cards else None,
            "viewer": viewer,
        },
    )


# ---------- quiz ----------

@router.post("/quiz/{topic_id}", response_class=RedirectResponse)
async def quiz_start(
    request: Request,
    topic_id: str,
    current_user: OptionalUser,
    store: Annotated[Store, Depends(get_store)],
    generator: Annotated[ContentGenerator, Depends(get_generator)],
):
    if current_user is None:
        return _login_redirect(request)

    try:
        with handler_boundary("Error generating quiz"):
            quiz = await learning.generate_quiz(store, generator, current_user.id, topic_id)
    except AppError as e:
        return _error_page(request, current_user, e.message, e.status_code)

    return RedirectResponse(
        request.url_for("quiz_page", topic_id=topic_id, quiz_id=quiz.id), status_code=303
    )


def _quiz_state(request: Request, user_id: str, quiz_id: str, runner: QuizRunner) -> str:
    return sign_quiz_state(user_id, quiz_id, runner.current, runner.score, request.app.state.settings)


async def _load_runner(
    request: Request, store: Store, user_id: str, quiz_id: str, question: int, score: int, state: str | None
):
    if not verify_quiz_state(user_id, quiz_id, question, score, state, request.app.state.settings):
        raise InvalidInput("Quiz state is invalid")
    quiz = await store.get_quiz(user_id, quiz_id)
    try:
        return quiz, QuizRunner.resume(quiz.quiz_content, current=question, score=score)
    except InvalidTransition as e:
        raise InvalidInput(str(e)) from e


@router.get("/quiz/{topic_id}/{quiz_id}", response_class=HTMLResponse)
async def quiz_page(
    request: Request,
    topic_id: str,
    quiz_id: str,
    current_user: OptionalUser,
    store: Annotated[Store, Depends(get_store)],
    question: int = 0,
    score: int = 0,
    state: str | None = None,
):
    if current_user is None:
        return _login_redirect(request)

    try:
        quiz, runner = await _load_runner(request, store, current_user.id, quiz_id, question, score, state)
    except AppError as e:
        return _error_page(request, current_user, e.message, e.status_code)

    return templates.TemplateResponse(
        request,
        "quiz.html",
        {
            "current_user": current_user,
            "quiz": quiz,
            "runner": runner,
            "state": _quiz_state(request, current_user.id, quiz_id, runner),
            "error": "",
        },
    )


@router.post("/quiz/{topic_id}/{quiz_id}", response_class=HTMLResponse)
async def quiz_answer(
    request: Request,
    topic_id: str,
    quiz_id: str,
    current_user: OptionalUser,
    store: Annotated[Store, Depends(get_store)],
    question: Annotated[int, Form()] = 0,
    score: Annotated[int, Form()] = 0,
    answer: Annotated[str | None, Form()] = None,
    state: Annotated[str | None, Form()] = None,
):
    if current_user is None:
        return _login_redirect(request)

    try:
        quiz, runner = await _load_runner(request, store, current_user.id, quiz_id, question, score, state)
    except AppError as e:
        return _error_page(request, current_user, e.message, e.status_code)

    if answer is None:
        return templates.TemplateResponse(
            request,
            "quiz.html",
            {
                "current_user": current_user,
                "quiz": quiz,
                "runner": runner,
                "state": _quiz_state(request, current_user.id, quiz_id, runner),
                "error": "Select an answer first",
            },
            status_code=400,
        )

    runner.select(answer)
    runner.advance()
    if runner.state != COMPLETED:
        return RedirectResponse(
            request.url_for("quiz_page", topic_id=topic_id, quiz_id=quiz_id).include_query_params(
                question=runner.current,
                score=runner.score,
                state=_quiz_state(request, current_user.id, quiz_id, runner),
            ),
            status_code=303,
        )

    try:
        with handler_boundary("Error updating progress"):
            await learning.update_progress(store, current_user.id, quiz.topic_id, runner.percentage)
    except AppError as e:
        return _error_page(request, current_user, e.message, e.status_code)

    return templates.TemplateResponse(
        request,
        "quiz_done.html",
        {"current_user": current_user, "quiz": quiz, "runner": runner},
    )

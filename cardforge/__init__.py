"""CardForge: topic-driven flashcards, quizzes and progress tracking."""

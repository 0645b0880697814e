"""QuizGuard: timed, proctored quiz-taking session engine."""

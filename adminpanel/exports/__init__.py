"""CSV exports: batch submission, Celery chunk tasks and progress reporting."""

from django.apps import AppConfig


class LearningConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'learning'
    verbose_name = 'Attempts & Progress'

    def ready(self):
        # Fails startup if a question type has no grader
        from learning.services import scoring  # noqa: F401

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "edu_assess.settings")

app = Celery("edu_assess")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

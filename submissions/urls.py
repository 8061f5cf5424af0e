from django.urls import path

from . import views

app_name = "submissions"

urlpatterns = [
    path("", views.submission_create, name="submission_create"),
    path("bulk-scores/", views.bulk_scores, name="bulk_scores"),
    path(
        "batch-update-scores/",
        views.batch_update_scores,
        name="batch_update_scores",
    ),
    path("student/<str:student_id>/", views.student_submissions, name="student_submissions"),
    path("<int:submission_id>/", views.submission_detail, name="submission_detail"),
    path("<int:submission_id>/scores/", views.submission_scores, name="submission_scores"),
    path(
        "<int:submission_id>/update-scores/",
        views.submission_update_scores,
        name="submission_update_scores",
    ),
]

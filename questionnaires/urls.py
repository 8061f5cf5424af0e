from django.urls import path

from . import views

app_name = "questionnaires"

urlpatterns = [
    path("templates/", views.template_collection, name="template_collection"),
    path(
        "templates/validate/",
        views.validate_template_structure,
        name="template_validate",
    ),
    path("templates/<int:template_id>/", views.template_detail, name="template_detail"),
    path(
        "templates/<int:template_id>/questions/",
        views.template_questions,
        name="template_questions",
    ),
    path(
        "templates/<int:template_id>/scoring-metadata/",
        views.template_scoring_metadata,
        name="template_scoring_metadata",
    ),
]

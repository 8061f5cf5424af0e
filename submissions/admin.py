"""Admin for form submissions."""

from django.contrib import admin, messages

from submissions.models import FormSubmission
from submissions.services.submission_scores import SubmissionScoreService


@admin.register(FormSubmission)
class FormSubmissionAdmin(admin.ModelAdmin):
    list_display = (
        "student_name",
        "student_id",
        "questionnaire_title",
        "status",
        "total_score",
        "submitted_at",
    )
    search_fields = ("student_name", "student_id", "questionnaire_title")
    list_filter = ("status", "questionnaire")
    ordering = ("-submitted_at",)
    readonly_fields = ("total_score", "domain_scores", "created_at", "updated_at")
    list_select_related = ("questionnaire",)
    actions = ("recalculate_scores",)

    @admin.action(description="按当前模板重算分数")
    def recalculate_scores(self, request, queryset):
        # 单次批量接口有条数上限，按上限分块处理全部选中记录
        ids = list(queryset.values_list("id", flat=True))
        chunk_size = SubmissionScoreService.bulk_score_limit()
        success_count = error_count = 0
        for start in range(0, len(ids), chunk_size):
            summary = SubmissionScoreService.batch_update_scores(ids[start : start + chunk_size])
            success_count += summary["successCount"]
            error_count += summary["errorCount"]
        self.message_user(
            request,
            f"已重算 {success_count} 条提交，失败 {error_count} 条。",
            messages.SUCCESS if not error_count else messages.WARNING,
        )

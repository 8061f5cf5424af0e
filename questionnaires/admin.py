"""Admin for questionnaire templates."""

from django import forms
from django.contrib import admin, messages
from django.core.exceptions import ValidationError

from questionnaires.models import QuestionnaireTemplate
from questionnaires.service.questionnaire_template import QuestionnaireTemplateService
from questionnaires.tree import build_template_metadata


class QuestionnaireTemplateAdminForm(forms.ModelForm):
    """后台直接编辑 structure 时同样走完整的结构校验。"""

    class Meta:
        model = QuestionnaireTemplate
        fields = "__all__"

    def clean_structure(self):
        structure = self.cleaned_data.get("structure")
        errors = QuestionnaireTemplateService.validate_structure(structure)
        if errors:
            raise ValidationError(errors)
        return structure


@admin.register(QuestionnaireTemplate)
class QuestionnaireTemplateAdmin(admin.ModelAdmin):
    form = QuestionnaireTemplateAdminForm
    list_display = (
        "title",
        "version",
        "question_count",
        "created_by",
        "is_active",
        "updated_at",
    )
    search_fields = ("title", "description")
    list_filter = ("is_active",)
    ordering = ("-created_at",)
    readonly_fields = ("version", "created_at", "updated_at")
    actions = ("mark_active", "mark_inactive")

    def question_count(self, obj):
        structure = obj.structure if isinstance(obj.structure, list) else []
        return build_template_metadata(structure)["totalQuestions"]

    question_count.short_description = "题目数"

    def save_model(self, request, obj, form, change):
        if change and "structure" in form.changed_data:
            obj.version += 1
        super().save_model(request, obj, form, change)

    def get_actions(self, request):
        actions = super().get_actions(request)
        if "delete_selected" in actions:
            del actions["delete_selected"]
        return actions

    @admin.action(description="标记为启用")
    def mark_active(self, request, queryset):
        updated = queryset.update(is_active=True)
        self.message_user(request, f"已启用 {updated} 个问卷。", messages.SUCCESS)

    @admin.action(description="标记为停用")
    def mark_inactive(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f"已停用 {updated} 个问卷。", messages.SUCCESS)

    def delete_model(self, request, obj):
        """重写单条删除为软删除。"""
        self._soft_delete(obj)
        self.message_user(request, f"问卷“{obj}”已标记为停用。", messages.INFO)

    def delete_queryset(self, request, queryset):
        """重写批量删除为软删除。"""
        count = 0
        for obj in queryset:
            if self._soft_delete(obj):
                count += 1
        if count:
            self.message_user(request, f"{count} 个问卷已标记为停用。", messages.INFO)

    def _soft_delete(self, obj: QuestionnaireTemplate) -> bool:
        if not obj.is_active:
            return False
        obj.is_active = False
        obj.save(update_fields=["is_active"])
        return True

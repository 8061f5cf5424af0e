"""
URL configuration for edu_assess project.

问卷模板与提交评分接口统一挂在 api/ 前缀下；认证由部署层负责。
"""
from django.contrib import admin
from django.urls import include, path

admin.site.site_header = "问卷评估管理后台"
admin.site.site_title = "问卷评估系统"
admin.site.index_title = "后台管理首页"

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/questionnaires/", include("questionnaires.urls", namespace="questionnaires")),
    path("api/submissions/", include("submissions.urls", namespace="submissions")),
]

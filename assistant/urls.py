from django.urls import path
from .views import AssistantView, FaqView

urlpatterns = [
    path("", AssistantView.as_view(), name="assistant"),
    path("faq/", FaqView.as_view(), name="assistant-faq"),
]

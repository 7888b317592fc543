from django.urls import path
from .views import TopPropertiesView, PopularSearchesView

urlpatterns = [
    path("top-properties/", TopPropertiesView.as_view(), name="top-properties"),
    path("popular-searches/", PopularSearchesView.as_view(), name="popular-searches"),
]

from django.urls import path
from .views import RouteListAPIView, RouteMapAPIView

app_name = "transport"

urlpatterns = [
    path("api/routes/", RouteListAPIView.as_view(), name="route-list"),
    path("api/routes/<str:route_id>/map/", RouteMapAPIView.as_view(), name="route-map"),
]

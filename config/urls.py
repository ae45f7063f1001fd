from django.urls import include, path

urlpatterns = [
    path("transport/", include("transport.urls")),
]

from django.http import HttpResponse
from django.urls import include, path


def index(request):
    return HttpResponse("Raktsetu server is running!")


urlpatterns = [
    path("", index, name="index"),
    path("api/", include("raktsetu.urls")),
]

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("cart.urls")),
    path("api/", include("checkout.urls")),
]

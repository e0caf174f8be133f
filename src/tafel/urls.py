from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import path

from tafel.core import views

urlpatterns = [
    path("admin/", admin.site.urls),
    path("<slug:slug>/drag/", views.board_drag, name="board_drag"),
    path(
        "<slug:slug>/items/<uuid:item_id>/status/",
        views.item_status,
        name="item_status",
    ),
    path(
        "<slug:slug>/columns/<uuid:column_id>/ruler/",
        views.column_ruler,
        name="column_ruler",
    ),
    path("<slug:slug>/", views.board_detail, name="board_detail"),
    path("", views.board_list, name="board_list"),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

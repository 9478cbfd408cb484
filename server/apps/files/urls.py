from django.urls import path

from server.apps.files import views

app_name = 'files'

urlpatterns = [
    path('files', views.FileListView.as_view(), name='file-list'),
    path('files/upload', views.FileUploadView.as_view(), name='file-upload'),
    path('files/search', views.FileSearchView.as_view(), name='file-search'),
    path(
        'files/download/<str:file_id>',
        views.FileDownloadView.as_view(),
        name='file-download',
    ),
    path(
        'files/<str:file_id>',
        views.FileDetailView.as_view(),
        name='file-detail',
    ),
    path(
        'folders',
        views.FolderCollectionView.as_view(),
        name='folder-list',
    ),
    path(
        'folders/<str:folder_id>',
        views.FolderDetailView.as_view(),
        name='folder-detail',
    ),
]

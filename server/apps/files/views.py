"""JSON endpoints for files and folders.

Views only translate between HTTP and the logic layer; the caller's
owner id is taken from the identity resolved by ``ApiView`` and passed
explicitly into every operation.
"""

from typing import final

from django.http import HttpRequest, JsonResponse

from server.apps.accounts.providers import Identity
from server.apps.api.views import ApiView, parse_json_body
from server.apps.files.logic import file_operations, folder_operations
from server.apps.files.logic.identifiers import (
    parse_entity_id,
    parse_folder_scope,
    parse_optional_folder_id,
)
from server.apps.files.serializers import serialize_file, serialize_folder


@final
class FileUploadView(ApiView):
    """``POST /files/upload`` (multipart, optional ``folder_id``)."""

    def post(self, request: HttpRequest, identity: Identity) -> JsonResponse:
        uploads = [
            upload
            for field_name in request.FILES
            for upload in request.FILES.getlist(field_name)
        ]
        folder_id = parse_optional_folder_id(request.POST.get('folder_id'))
        record = file_operations.upload_file(identity.id, uploads, folder_id)
        return JsonResponse({
            'message': 'File uploaded successfully',
            'path': record.storage_path,
        })


@final
class FileListView(ApiView):
    """``GET /files?limit&offset&sortBy&order&folderId``."""

    def get(self, request: HttpRequest, identity: Identity) -> JsonResponse:
        params = request.GET
        page = file_operations.build_page_request(
            limit=params.get('limit'),
            offset=params.get('offset'),
            sort_by=params.get('sortBy'),
            order=params.get('order'),
        )
        scope = parse_folder_scope(params.get('folderId'))
        result = file_operations.list_files(identity.id, scope, page)
        return JsonResponse({
            'total': result.total,
            'limit': page.limit,
            'offset': page.offset,
            'files': [serialize_file(record) for record in result.items],
        })


@final
class FileSearchView(ApiView):
    """``GET /files/search?q&folderId``."""

    def get(self, request: HttpRequest, identity: Identity) -> JsonResponse:
        scope = parse_folder_scope(request.GET.get('folderId'))
        records = file_operations.search_files(
            identity.id,
            scope,
            request.GET.get('q'),
        )
        return JsonResponse(
            [serialize_file(record) for record in records],
            safe=False,
        )


@final
class FileDownloadView(ApiView):
    """``GET /files/download/<id>``: signed link to the blob."""

    def get(
        self,
        request: HttpRequest,
        identity: Identity,
        file_id: str,
    ) -> JsonResponse:
        url = file_operations.get_download_link(
            identity.id,
            parse_entity_id(file_id, 'File not found'),
        )
        return JsonResponse({'url': url})


@final
class FileDetailView(ApiView):
    """``DELETE /files/<id>``."""

    def delete(
        self,
        request: HttpRequest,
        identity: Identity,
        file_id: str,
    ) -> JsonResponse:
        file_operations.delete_file(
            identity.id,
            parse_entity_id(file_id, 'File not found'),
        )
        return JsonResponse({'message': 'File deleted successfully'})


@final
class FolderCollectionView(ApiView):
    """``GET /folders?parentId`` and ``POST /folders``."""

    def get(self, request: HttpRequest, identity: Identity) -> JsonResponse:
        scope = parse_folder_scope(request.GET.get('parentId'))
        folders = folder_operations.list_folders(identity.id, scope)
        return JsonResponse(
            [serialize_folder(folder) for folder in folders],
            safe=False,
        )

    def post(self, request: HttpRequest, identity: Identity) -> JsonResponse:
        body = parse_json_body(request)
        folder = folder_operations.create_folder(
            identity.id,
            body.get('name'),
            parse_optional_folder_id(body.get('parent_id')),
        )
        return JsonResponse({
            'message': 'Folder created',
            'folder': serialize_folder(folder),
        })


@final
class FolderDetailView(ApiView):
    """``PATCH /folders/<id>`` (rename and/or move) and ``DELETE``."""

    def patch(
        self,
        request: HttpRequest,
        identity: Identity,
        folder_id: str,
    ) -> JsonResponse:
        body = parse_json_body(request)
        target = parse_entity_id(folder_id, 'Folder not found')
        moving = 'parent_id' in body
        parent_id = parse_optional_folder_id(body.get('parent_id'))

        folder_operations.update_folder(
            identity.id,
            target,
            body.get('name'),
            parent_id,
            rename='name' in body or not moving,
            move=moving,
        )
        if moving:
            return JsonResponse({'message': 'Folder moved'})
        return JsonResponse({'message': 'Folder renamed'})

    def delete(
        self,
        request: HttpRequest,
        identity: Identity,
        folder_id: str,
    ) -> JsonResponse:
        folder_operations.delete_folder(
            identity.id,
            parse_entity_id(folder_id, 'Folder not found'),
        )
        return JsonResponse({'message': 'Folder deleted'})

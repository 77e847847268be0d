"""
Drive helpers: folders, copies, renames, deletes, exports and sharing.
https://developers.google.com/drive/api/reference/rest/v3

All calls pass supportsAllDrives so shared drive items work the same as
My Drive ones.
"""
from dataclasses import dataclass, field
from typing import List, Self
import io
import logging

from googleapiclient.http import MediaIoBaseDownload

from .access import gws
from .errors import PermissionNotFoundError, api_call
from .resources import GoogleWorkSpaceResourceBase

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
DOCUMENT_MIME_TYPE = "application/vnd.google-apps.document"
VALID_ROLES = ["owner", "organizer", "fileOrganizer", "writer", "commenter", "reader"]

_FILE_FIELDS = "id, name, mimeType, parents, webViewLink"


def _get_service():
    gws.append_scopes("drive")
    return gws.get_service("drive", "v3")


@dataclass
class File(GoogleWorkSpaceResourceBase):
    """
    https://developers.google.com/drive/api/reference/rest/v3/files#File
    Only the commonly requested fields, which ones are filled depends on the
    'fields' asked for.
    """
    kind: str|None = field(default=None)
    id: str|None = field(default=None)
    name: str|None = field(default=None)
    mimeType: str|None = field(default=None)
    description: str|None = field(default=None)
    parents: List[str]|None = field(default=None)
    webViewLink: str|None = field(default=None)
    driveId: str|None = field(default=None)
    trashed: bool|None = field(default=None)

    def __bool__(self) -> bool:
        return bool(self.id)

    def __str__(self) -> str:
        if self:
            return f"{self.name}<{self.id}>"
        return "<empty>"

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{str(self)}"

    @property
    def is_folder(self) -> bool:
        return self.mimeType == FOLDER_MIME_TYPE


@dataclass
class Permission(GoogleWorkSpaceResourceBase):
    """https://developers.google.com/drive/api/reference/rest/v3/permissions#Permission"""
    id: str|None = field(default=None)
    type: str|None = field(default=None)
    role: str|None = field(default=None)
    emailAddress: str|None = field(default=None)
    domain: str|None = field(default=None)

    def __bool__(self) -> bool:
        return bool(self.id)

    @classmethod
    def user(cls, email: str, role: str) -> Self:
        if role not in VALID_ROLES:
            raise ValueError(f"Invalid permission role: {role}")
        if not email:
            raise ValueError("Permission needs an email address")
        return cls(type="user", role=role, emailAddress=email)


@api_call("unable to create folder")
def create_folder(name: str, parent_id: str|None = None) -> File:
    body = {"name": name, "mimeType": FOLDER_MIME_TYPE}
    if parent_id:
        body["parents"] = [parent_id]
    response = _get_service().files().create(body=body, fields=_FILE_FIELDS,
                                              supportsAllDrives=True).execute()
    folder = File.from_base(response)
    logger.info("created folder %s", folder)
    return folder


@api_call("unable to retrieve file metadata")
def get_file(file_id: str, fields: str = _FILE_FIELDS) -> File:
    response = _get_service().files().get(fileId=file_id, fields=fields,
                                           supportsAllDrives=True).execute()
    return File.from_base(response)


@api_call("unable to copy file")
def copy_file(file_id: str, name: str|None = None, folder_id: str|None = None) -> File:
    """
    https://developers.google.com/drive/api/reference/rest/v3/files/copy
    Without a name Drive uses "Copy of <name>", without a folder the copy
    lands next to the original.
    """
    body = {}
    if name:
        body["name"] = name
    if folder_id:
        body["parents"] = [folder_id]
    response = _get_service().files().copy(fileId=file_id, body=body, fields=_FILE_FIELDS,
                                            supportsAllDrives=True).execute()
    copied = File.from_base(response)
    logger.info("copied %s to %s", file_id, copied)
    return copied


def copy_to_folder(file_id: str, folder_id: str) -> File:
    return copy_file(file_id, folder_id=folder_id)


@api_call("unable to rename file")
def rename(file_id: str, name: str) -> File:
    """Works for folders too, they're just files with a special mimeType."""
    if not name:
        raise ValueError("New name must not be empty")
    response = _get_service().files().update(fileId=file_id, body={"name": name}, fields=_FILE_FIELDS,
                                              supportsAllDrives=True).execute()
    logger.info("renamed %s to '%s'", file_id, name)
    return File.from_base(response)


@api_call("unable to delete folder or file")
def delete(file_id: str) -> None:
    """Permanent, this skips the trash.  Deleting a folder deletes its contents."""
    _get_service().files().delete(fileId=file_id, supportsAllDrives=True).execute()
    logger.info("deleted %s", file_id)


@api_call("unable to export file")
def export(file_id: str, mime_type: str) -> bytes:
    """
    https://developers.google.com/drive/api/reference/rest/v3/files/export
    Export a Google Workspace file to another format, limited to 10MB by Drive.
    """
    request = _get_service().files().export_media(fileId=file_id, mimeType=mime_type)
    fh = io.BytesIO()
    downloader = MediaIoBaseDownload(fh, request)
    done = False
    while not done:
        _, done = downloader.next_chunk()
    return fh.getvalue()


def export_text(file_id: str) -> str:
    """Plain text export.  Drive prefixes a BOM which is dropped."""
    return export(file_id, "text/plain").decode("utf-8-sig")


@api_call("unable to add permission")
def add_permission(file_id: str, email: str, role: str = "reader", notify: bool = True) -> Permission:
    """
    https://developers.google.com/drive/api/reference/rest/v3/permissions/create
    Grant a user a role on a file or folder.  Making someone the owner
    requires transferOwnership, which is set for you, and Drive refuses an
    ownership transfer without the notification so notify is ignored then.
    """
    permission = Permission.user(email, role)
    request = {"fileId": file_id, "body": permission.trim(), "supportsAllDrives": True,
               "sendNotificationEmail": notify}
    if role == "owner":
        request["transferOwnership"] = True
        request["sendNotificationEmail"] = True
    response = _get_service().permissions().create(**request).execute()
    logger.info("granted %s %s on %s", email, role, file_id)
    return Permission.from_base(response)


@api_call("unable to list permissions")
def list_permissions(file_id: str) -> List[Permission]:
    method = _get_service().permissions().list
    page_token = None
    permissions = []
    while True:
        response = method(fileId=file_id, pageToken=page_token,
                          fields="nextPageToken, permissions(id, type, role, emailAddress, domain)",
                          supportsAllDrives=True).execute()
        permissions.extend(Permission.from_base(p) for p in response.get("permissions", []))
        page_token = response.get("nextPageToken", None)
        if not page_token:
            break
    return permissions


@api_call("unable to remove permission")
def remove_permission(file_id: str, email: str) -> Permission:
    """
    Remove whatever permission the given email has on the file.
    Emails are compared case insensitively, Drive stores addresses lower case.
    """
    for permission in list_permissions(file_id):
        if (permission.emailAddress or "").lower() == email.lower():
            _get_service().permissions().delete(fileId=file_id, permissionId=permission.id,
                                                supportsAllDrives=True).execute()
            logger.info("removed %s permission for %s on %s", permission.role, email, file_id)
            return permission
    raise PermissionNotFoundError(email, file_id)

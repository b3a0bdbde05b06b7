import mimetypes
import os
import re
import shutil
from typing import Iterable, Optional

from cms_gateway.core.exceptions import UploadError
from cms_gateway.models.post import PostStatus, ATTACHMENT_TYPE
from cms_gateway.schemas.upload import UploadedFile, UploadErrorCode
from cms_gateway.storage.media.media_interface import IUploadHandler
from cms_gateway.storage.post.post_interface import IPostRepository

from cms_gateway.core.logx import logger

# 各错误码对应的提示
UPLOAD_ERROR_MESSAGES = {
    UploadErrorCode.INI_SIZE: "The uploaded file exceeds the maximum upload size.",
    UploadErrorCode.FORM_SIZE: "The uploaded file exceeds the form's maximum size.",
    UploadErrorCode.PARTIAL: "The uploaded file was only partially uploaded.",
    UploadErrorCode.NO_FILE: "No file was uploaded.",
    UploadErrorCode.NO_TMP_DIR: "Missing a temporary folder.",
    UploadErrorCode.CANT_WRITE: "Failed to write file to disk.",
    UploadErrorCode.EXTENSION: "File upload stopped by extension.",
}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(name: str) -> str:
    """去掉目录部分，空白换成 -，其它不安全字符删除"""
    name = os.path.basename(name.replace("\\", "/")).strip()
    name = re.sub(r"\s+", "-", name)
    name = _UNSAFE_CHARS.sub("", name).strip(".-")
    return name or "file"


def unique_filename(directory: str, name: str) -> str:
    """目录下已有同名文件时依次尝试 name-1.ext、name-2.ext ..."""
    stem, ext = os.path.splitext(name)
    candidate = name
    n = 1
    while os.path.exists(os.path.join(directory, candidate)):
        candidate = f"{stem}-{n}{ext}"
        n += 1
    return candidate


class LocalMediaUploadHandler(IUploadHandler):
    """
    本地磁盘上传处理器：
    1. 校验错误码、临时文件、大小、MIME 类型
    2. 把临时文件移动到上传目录（文件名去重）
    3. 创建附件帖子，post_parent 指向目标帖子，guid 为对外 URL
    任一步失败都抛 UploadError
    """

    def __init__(
        self,
        post_repo: IPostRepository,
        upload_dir: str,
        base_url: str,
        allowed_mime_types: Iterable[str],
        max_size: int,
    ):
        self.post_repo = post_repo
        self.upload_dir = upload_dir
        self.base_url = base_url.rstrip("/")
        self.allowed_mime_types = set(allowed_mime_types)
        self.max_size = max_size

    def _resolve_mime_type(self, file: UploadedFile) -> Optional[str]:
        guessed, _ = mimetypes.guess_type(file.name)
        return guessed or file.type or None

    def handle_upload(self, file: UploadedFile, post_id: int) -> int:
        if file.error != UploadErrorCode.OK:
            raise UploadError(file.name, UPLOAD_ERROR_MESSAGES.get(file.error, "Unknown upload error."))

        if not file.tmp_name or not os.path.isfile(file.tmp_name):
            raise UploadError(file.name, "Specified file failed upload test.")

        size = os.path.getsize(file.tmp_name)
        if size == 0:
            raise UploadError(file.name, "File is empty.")
        if size > self.max_size:
            raise UploadError(file.name, UPLOAD_ERROR_MESSAGES[UploadErrorCode.INI_SIZE])

        mime_type = self._resolve_mime_type(file)
        if mime_type not in self.allowed_mime_types:
            raise UploadError(file.name, "Sorry, this file type is not permitted for security reasons.")

        try:
            os.makedirs(self.upload_dir, exist_ok=True)
            stored_name = unique_filename(self.upload_dir, sanitize_filename(file.name))
            target = os.path.join(self.upload_dir, stored_name)
            shutil.move(file.tmp_name, target)
        except OSError as e:
            logger.error(f"Move uploaded file {file.name} failed: {e}")
            raise UploadError(file.name, UPLOAD_ERROR_MESSAGES[UploadErrorCode.CANT_WRITE])

        attachment_id = self.post_repo.insert_post({
            "title": os.path.splitext(stored_name)[0],
            "post_type": ATTACHMENT_TYPE,
            "status": PostStatus.INHERIT,
            "post_parent": post_id,
            "mime_type": mime_type,
            "guid": f"{self.base_url}/{stored_name}",
            "attached_file": os.path.abspath(target),
        })
        if not attachment_id:
            # 附件入库失败，清理已经落盘的文件
            try:
                os.remove(target)
            except OSError as e:
                logger.warning(f"Cleanup of {target} failed: {e}")
            raise UploadError(file.name, "Could not insert attachment into the database.")

        logger.info(f"Stored upload {file.name} as {stored_name}, attachment id={attachment_id}, parent={post_id}")
        return attachment_id

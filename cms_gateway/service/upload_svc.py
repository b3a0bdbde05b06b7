from typing import List, Optional

from cms_gateway.schemas.upload import (
    FileSet,
    FileSetEntry,
    UploadedFile,
    UploadErrorCode,
    UploadResult,
)
from cms_gateway.storage.post.post_interface import IPostRepository
from cms_gateway.storage.field.field_interface import IFieldRepository
from cms_gateway.storage.media.media_interface import IUploadHandler

from cms_gateway.core.logx import logger
from cms_gateway.core.exceptions import UploadError, UploadParameterNotSet


def _handle(upload_handler: IUploadHandler, file: UploadedFile, post_id: int) -> Optional[int]:
    """调用上传处理器，处理器拒绝时返回 None"""
    try:
        return upload_handler.handle_upload(file, post_id)
    except UploadError as e:
        logger.warning(f"Upload rejected for post {post_id}: {e}")
        return None


def split_entry(entry: FileSetEntry) -> List[UploadedFile]:
    """
    把多文件条目的平行列表（name[] / type[] / tmp_name[] / error[] / size[]）
    转置成每个文件一条记录，保持原顺序
    """
    return [
        UploadedFile(name=name, type=type_, tmp_name=tmp_name, error=error, size=size)
        for name, type_, tmp_name, error, size in zip(
            entry.name, entry.type, entry.tmp_name, entry.error, entry.size
        )
    ]


def attach_upload(
    post_repo: IPostRepository,
    field_repo: IFieldRepository,
    upload_handler: IUploadHandler,
    post_id: int,
    file_set: FileSet,
    file_key: str,
    custom_field: Optional[str] = None,
) -> Optional[int]:
    """
    上传单个文件并挂到帖子下：
    1. 取出文件集合中 file_key 对应的文件，交给上传处理器
    2. 处理器失败 -> 返回 None
    3. 给了 custom_field 时，把附件 URL 写入帖子的这个自定义字段
    4. 返回附件 ID
    """
    entry = file_set.get(file_key)
    if entry is None or entry.is_multiple:
        logger.warning(f"Upload for post {post_id} failed, '{file_key}' is not a single file")
        return None

    attachment_id = _handle(upload_handler, entry.single(), post_id)
    if attachment_id is None:
        return None

    if custom_field:
        field_repo.update_field(custom_field, post_repo.get_attachment_url(attachment_id), post_id)

    logger.info(f"Attached upload id={attachment_id} to post {post_id}")
    return attachment_id


def attach_uploads(
    post_repo: IPostRepository,
    field_repo: IFieldRepository,
    upload_handler: IUploadHandler,
    post_id: int,
    file_set: FileSet,
    file_key: str,
) -> List[UploadResult]:
    """
    批量上传（多文件表单字段）：
    - 没有文件或 file_key 不存在 -> 抛 UploadParameterNotSet
    - 实际只有一个文件 -> 走 attach_upload（不写自定义字段），结果包成一条
    - 否则逐个上传，跳过“没有文件”的空位；
      出错的文件直接记失败，不调用上传处理器
    - 单个文件失败不会中断，返回每个文件的结果
    """
    if not file_set or file_key not in file_set:
        raise UploadParameterNotSet(file_key=file_key)

    entry = file_set[file_key]
    if not entry.is_multiple:
        attachment_id = attach_upload(post_repo, field_repo, upload_handler, post_id, file_set, file_key, None)
        return [UploadResult(name=entry.name, success=attachment_id is not None, id=attachment_id)]

    files = [f for f in split_entry(entry) if f.error != UploadErrorCode.NO_FILE]

    results = []
    for file in files:
        if file.error != UploadErrorCode.OK:
            results.append(UploadResult(name=file.name, success=False, id=None))
            continue

        attachment_id = _handle(upload_handler, file, post_id)
        results.append(UploadResult(name=file.name, success=attachment_id is not None, id=attachment_id))

    logger.info(
        f"Batch upload for post {post_id}: "
        f"{sum(r.success for r in results)}/{len(results)} files attached"
    )
    return results

import os
import shutil
import tempfile
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from cms_gateway.schemas.upload import FileSet, FileSetEntry, UploadedFile, UploadErrorCode
from cms_gateway.core.biz_response import BizResponse
from cms_gateway.core.config import UPLOAD_TMP_DIR, MAX_UPLOAD_SIZE
from cms_gateway.service import upload_svc

from cms_gateway.storage.database import (
    get_post_repo,
    get_field_repo,
    get_upload_handler,
)
from cms_gateway.storage.post.post_interface import IPostRepository
from cms_gateway.storage.field.field_interface import IFieldRepository
from cms_gateway.storage.media.media_interface import IUploadHandler

from cms_gateway.core.exceptions import UploadParameterNotSet
from cms_gateway.core.logx import logger

uploads_router = APIRouter(prefix="/posts", tags=["uploads"])


def _spool(upload: UploadFile, tmp_paths: List[str]) -> UploadedFile:
    """
    把 multipart 里的一个文件落到临时文件：
    - 文件名为空（表单里没选文件的空位）-> NO_FILE
    - 超过大小上限 -> INI_SIZE
    """
    if not upload.filename:
        return UploadedFile(name="", error=UploadErrorCode.NO_FILE)

    suffix = os.path.splitext(upload.filename)[1]
    with tempfile.NamedTemporaryFile(delete=False, dir=UPLOAD_TMP_DIR, suffix=suffix) as tmp:
        tmp_paths.append(tmp.name)
        shutil.copyfileobj(upload.file, tmp)
        size = tmp.tell()

    error = UploadErrorCode.INI_SIZE if size > MAX_UPLOAD_SIZE else UploadErrorCode.OK
    return UploadedFile(
        name=upload.filename,
        type=upload.content_type or "",
        tmp_name=tmp.name,
        error=error,
        size=size,
    )


async def file_set_of(request: Request, tmp_paths: List[str]) -> FileSet:
    """
    multipart 表单 -> 文件集合：
    - 以 [] 结尾的字段（如 files[]）是多文件字段，条目为平行列表，字段名去掉 []
    - 其它字段是单文件字段，重复出现时以最后一个为准
    落盘的临时文件记到 tmp_paths 里，由调用方在请求结束后清理
    """
    form = await request.form()
    grouped: Dict[str, List[UploadedFile]] = {}
    multiple: Dict[str, bool] = {}

    for key, value in form.multi_items():
        if not isinstance(value, UploadFile):
            continue
        is_list = key.endswith("[]")
        name = key[:-2] if is_list else key
        described = await run_in_threadpool(_spool, value, tmp_paths)
        if is_list:
            grouped.setdefault(name, []).append(described)
        else:
            grouped[name] = [described]
        multiple[name] = is_list

    file_set: FileSet = {}
    for name, files in grouped.items():
        if multiple[name]:
            file_set[name] = FileSetEntry(
                name=[f.name for f in files],
                type=[f.type for f in files],
                tmp_name=[f.tmp_name for f in files],
                error=[f.error for f in files],
                size=[f.size for f in files],
            )
        else:
            f = files[0]
            file_set[name] = FileSetEntry(name=f.name, type=f.type, tmp_name=f.tmp_name, error=f.error, size=f.size)
    return file_set


def _cleanup(tmp_paths: List[str]) -> None:
    # 上传处理器成功时已经把临时文件移走了
    for path in tmp_paths:
        if os.path.exists(path):
            try:
                os.remove(path)
            except OSError as e:
                logger.warning(f"Remove temp upload {path} failed: {e}")


# --------------------------------- 单文件上传 ---------------------------------
@uploads_router.post("/{post_id}/upload/{file_key}")
async def attach_upload(
    post_id: int,
    file_key: str,
    request: Request,
    custom_field: Optional[str] = None,
    post_repo: IPostRepository = Depends(get_post_repo),
    field_repo: IFieldRepository = Depends(get_field_repo),
    upload_handler: IUploadHandler = Depends(get_upload_handler),
):
    """
    上传一个文件挂到帖子下；给了 custom_field 时把附件 URL 写入该字段
    """
    tmp_paths: List[str] = []
    try:
        file_set = await file_set_of(request, tmp_paths)
        attachment_id = await run_in_threadpool(
            upload_svc.attach_upload,
            post_repo,
            field_repo,
            upload_handler,
            post_id,
            file_set,
            file_key,
            custom_field,
        )
        if attachment_id is None:
            return BizResponse(data=None, msg="upload failed", status_code=400)
        return BizResponse(data={"id": attachment_id})
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg=str(e), status_code=500)
    finally:
        await run_in_threadpool(_cleanup, tmp_paths)


# --------------------------------- 多文件上传 ---------------------------------
@uploads_router.post("/{post_id}/uploads/{file_key}")
async def attach_uploads(
    post_id: int,
    file_key: str,
    request: Request,
    post_repo: IPostRepository = Depends(get_post_repo),
    field_repo: IFieldRepository = Depends(get_field_repo),
    upload_handler: IUploadHandler = Depends(get_upload_handler),
):
    """
    批量上传，返回每个文件的 {name, success, id}
    """
    tmp_paths: List[str] = []
    try:
        file_set = await file_set_of(request, tmp_paths)
        results = await run_in_threadpool(
            upload_svc.attach_uploads,
            post_repo,
            field_repo,
            upload_handler,
            post_id,
            file_set,
            file_key,
        )
        return BizResponse(data=[r.model_dump() for r in results])
    except UploadParameterNotSet as e:
        return BizResponse(data={"code": e.code, "message": e.message}, msg=e.message, status_code=400)
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg=str(e), status_code=500)
    finally:
        await run_in_threadpool(_cleanup, tmp_paths)

from typing import Protocol

from cms_gateway.schemas.upload import UploadedFile


class IUploadHandler(Protocol):
    """
    单文件上传处理器接口：
    - 校验文件、保存到存储、创建挂在 post_id 下的附件帖子
    - 成功返回附件 ID
    - 任何失败都抛出 UploadError
    """

    def handle_upload(self, file: UploadedFile, post_id: int) -> int:
        ...

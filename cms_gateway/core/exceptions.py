# domain_exceptions.py
from typing import Optional


class PostNotFound(Exception):
    """找不到帖子"""
    def __init__(self, post_id: Optional[int] = None, message: Optional[str] = None):
        if message:
            super().__init__(message)
        else:
            super().__init__(f"post {post_id} not found")


class UploadParameterNotSet(Exception):
    """
    批量上传时的参数错误：
    - 请求里根本没有文件
    - 或者指定的表单字段不在文件集合里
    code 与 message 一起作为结构化错误返回给调用方
    """
    code = "uploadParameterNotSet"

    def __init__(self, file_key: Optional[str] = None, message: Optional[str] = None):
        self.file_key = file_key
        if message:
            self.message = message
        elif file_key is not None:
            self.message = f"The upload file parameter '{file_key}' did not exist."
        else:
            self.message = "The upload file parameter did not exist."
        super().__init__(self.message)


class UploadError(Exception):
    """上传处理器拒绝了某个文件（校验失败、写盘失败、附件入库失败等）"""
    def __init__(self, filename: Optional[str] = None, message: str = "upload failed"):
        self.filename = filename
        self.message = message
        if filename:
            super().__init__(f"{filename}: {message}")
        else:
            super().__init__(message)

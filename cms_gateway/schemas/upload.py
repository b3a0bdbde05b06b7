from enum import IntEnum
from typing import Optional, List, Dict, Union

from pydantic import BaseModel, model_validator


# 上传错误码，取值与 multipart 上传的通用约定一致
class UploadErrorCode(IntEnum):
    OK = 0            # 无错误
    INI_SIZE = 1      # 超过服务器允许的大小
    FORM_SIZE = 2     # 超过表单声明的大小
    PARTIAL = 3       # 只上传了一部分
    NO_FILE = 4       # 没有文件（多文件表单里的空位）
    NO_TMP_DIR = 6    # 缺少临时目录
    CANT_WRITE = 7    # 写盘失败
    EXTENSION = 8     # 被扩展拦截


class UploadedFile(BaseModel):
    """
    单个上传文件的描述，显式传给上传处理器
    """
    name: str
    type: str = ""
    tmp_name: str = ""
    error: UploadErrorCode = UploadErrorCode.OK
    size: int = 0


class FileSetEntry(BaseModel):
    """
    文件集合中一个表单字段的条目：
    - 单文件：各属性都是标量
    - 多文件（name[] 形式的字段）：各属性是等长的平行列表，下标对应同一个文件
    """
    name: Union[str, List[str]]
    type: Union[str, List[str]]
    tmp_name: Union[str, List[str]]
    error: Union[UploadErrorCode, List[UploadErrorCode]]
    size: Union[int, List[int]]

    @model_validator(mode="after")
    def check_shape(self) -> "FileSetEntry":
        """要么全是标量，要么全是等长列表"""
        values = [self.name, self.type, self.tmp_name, self.error, self.size]
        lists = [v for v in values if isinstance(v, list)]
        if not lists:
            return self
        if len(lists) != len(values):
            raise ValueError("file set entry mixes scalar and list attributes")
        if len({len(v) for v in lists}) != 1:
            raise ValueError("file set entry lists have different lengths")
        return self

    @property
    def is_multiple(self) -> bool:
        return isinstance(self.name, list)

    def single(self) -> UploadedFile:
        """把标量条目转换为 UploadedFile（仅单文件条目可用）"""
        return UploadedFile(
            name=self.name,
            type=self.type,
            tmp_name=self.tmp_name,
            error=self.error,
            size=self.size,
        )


# 表单字段名 -> 条目
FileSet = Dict[str, FileSetEntry]


class UploadResult(BaseModel):
    """批量上传中每个文件的结果，不落库"""
    name: str
    success: bool
    id: Optional[int] = None

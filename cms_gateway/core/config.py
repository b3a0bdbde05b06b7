import os

# ======== 配置区 ========
# 全部可以通过环境变量覆盖，默认值用于本地开发
DB_HOST = os.getenv("CMS_DB_HOST", "127.0.0.1")
DB_PORT = int(os.getenv("CMS_DB_PORT", "3306"))
DB_USER = os.getenv("CMS_DB_USER", "root")
DB_PASSWORD = os.getenv("CMS_DB_PASSWORD", "")
DB_NAME = os.getenv("CMS_DB_NAME", "cms_db")

DATABASE_URL = os.getenv(
    "CMS_DATABASE_URL",
    f"mysql+pymysql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}?charset=utf8mb4",
)
SQL_ECHO = os.getenv("CMS_SQL_ECHO", "0") == "1"

# 上传文件最终存放的目录，以及对外访问的 URL 前缀
UPLOAD_DIR = os.getenv("CMS_UPLOAD_DIR", "./uploads")
UPLOAD_TMP_DIR = os.getenv("CMS_UPLOAD_TMP_DIR") or None   # None 表示使用系统临时目录
UPLOAD_BASE_URL = os.getenv("CMS_UPLOAD_BASE_URL", "http://127.0.0.1:8000/uploads").rstrip("/")

# 单个文件大小上限（字节），默认 10MB
MAX_UPLOAD_SIZE = int(os.getenv("CMS_MAX_UPLOAD_SIZE", str(10 * 1024 * 1024)))

ALLOWED_MIME_TYPES = tuple(
    t.strip()
    for t in os.getenv(
        "CMS_ALLOWED_MIME_TYPES",
        "image/jpeg,image/png,image/gif,image/webp,application/pdf,text/plain",
    ).split(",")
    if t.strip()
)

LOG_LEVEL = os.getenv("CMS_LOG_LEVEL", "INFO")
# ========================

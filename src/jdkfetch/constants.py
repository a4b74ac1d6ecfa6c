"""
Constants and configuration values for jdkfetch.

This module contains all hardcoded values, URLs, timeouts, and other constants
used throughout the application.
"""

APP_NAME = "jdkfetch"

# Upstream and mirror base URLs
GITHUB_API_BASE = "https://api.github.com/repos"
GITHUB_DOWNLOAD_BASE = "https://github.com"
TEMURIN_GITHUB_OWNER = "adoptium"
TEMURIN_REPO_TEMPLATE = "temurin{major}-binaries"
GITHUB_API_ACCEPT = "application/vnd.github+json"
GITHUB_API_VERSION = "2022-11-28"
ADOPTIUM_API_BASE = "https://api.adoptium.net/v3"
TSINGHUA_MIRROR_BASE = "https://mirrors.tuna.tsinghua.edu.cn/Adoptium"
ALIYUN_MIRROR_BASE = "https://mirrors.aliyun.com/eclipse/temurin-compliance/temurin"

# Source names (closed set, see jdkfetch.download.providers.SourceName)
SOURCE_GITHUB = "github"
SOURCE_ADOPTIUM = "adoptium"
SOURCE_TSINGHUA = "tsinghua"
SOURCE_ALIYUN = "aliyun"
ALL_SOURCES = (SOURCE_GITHUB, SOURCE_ADOPTIUM, SOURCE_TSINGHUA, SOURCE_ALIYUN)
DEFAULT_PRIMARY_SOURCE = SOURCE_TSINGHUA
DEFAULT_FALLBACK_SOURCES = (SOURCE_ALIYUN, SOURCE_GITHUB)

# Release scanning
DEFAULT_GITHUB_MAJORS = (25, 21, 17, 11, 8)
DEFAULT_RELEASES_PER_REPOSITORY = 5
LTS_MAJORS = frozenset({8, 11, 17, 21, 25})
GITHUB_MAX_PER_PAGE = 100
ADOPTIUM_PAGE_SIZE = 20

# Version spec parsing
VERSION_SPEC_PREFIXES = ("openjdk", "jdk", "java", "v")
OPEN_RANGE_UPPER_BOUND = 999

# Network timeouts (in seconds)
CATALOG_REQUEST_TIMEOUT = 15
PROBE_TIMEOUT = 10
DEFAULT_CONNECT_TIMEOUT = 10
DEFAULT_READ_TIMEOUT = 60

# Catalog request retry settings (urllib3 Retry)
DEFAULT_CONNECT_RETRIES = 3
DEFAULT_BACKOFF_FACTOR = 0.3
RETRY_STATUS_FORCELIST = (408, 429, 500, 502, 503, 504)

# Archive download retry settings
DEFAULT_RETRY_COUNT = 3
DEFAULT_RETRY_DELAY_MS = 1000
MAX_RETRY_DELAY = 60.0  # seconds
DEFAULT_CHUNK_SIZE = 8192
PERMANENT_HTTP_STATUSES = frozenset({401, 403, 404, 410})
NOT_FOUND_HTTP_STATUSES = frozenset({404, 410})

# Partial download handling
PART_FILE_SUFFIX = ".part"
HASH_FILE_SUFFIX = ".sha256"
STALE_PART_FILE_SECONDS = 600

# Cache settings
DEFAULT_CACHE_TTL_SECONDS = 3600
CACHE_SUBDIR = "catalog"
DOWNLOADS_SUBDIR = "downloads"
CACHE_KEY_TEMPLATE = "java_versions_{source}"
CACHE_FILE_SUFFIX = ".json"

# Registry file
REGISTRY_FILE_NAME = "java_versions.toml"
REGISTRY_PATH_ENV_VAR = "JDKFETCH_VERSIONS_PATH"
REGISTRY_PUBLISHED_AT = "registry"

# Platform names
OS_WINDOWS = "windows"
OS_MACOS = "macos"
OS_LINUX = "linux"
ARCH_X64 = "x64"
ARCH_AARCH64 = "aarch64"
ARCH_X86 = "x86"
UNKNOWN = "unknown"
ZIP_EXTENSION = "zip"
TAR_GZ_EXTENSION = "tar.gz"
ARCHIVE_EXTENSIONS = (".zip", ".tar.gz", ".tgz")

# Configuration file names
CONFIG_FILE_NAME = "jdkfetch.yaml"
CONFIG_PATH_ENV_VAR = "JDKFETCH_CONFIG"

# Logging configuration
LOGGER_NAME = "jdkfetch"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_NAME = "jdkfetch.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

# Environment variable names
LOG_LEVEL_ENV_VAR = "JDKFETCH_LOG_LEVEL"

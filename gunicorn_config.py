# gunicorn_config.py
import multiprocessing
import os

# 监听地址和端口
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")

# 工作进程数：公式通常为 (2 * CPU核心数) + 1
workers = multiprocessing.cpu_count() * 2 + 1

# 评分接口为纯 CPU 计算，使用默认的 sync 模式
worker_class = 'sync'

# 日志配置
_log_dir = os.getenv("GUNICORN_LOG_DIR", "/data/projects/edu_assess/logs")
accesslog = os.path.join(_log_dir, "gunicorn_access.log")
errorlog = os.path.join(_log_dir, "gunicorn_error.log")
loglevel = os.getenv("LOG_LEVEL", "info").lower()

# 进程名
proc_name = 'gunicorn_edu_assess'

# 批量评分请求可能较慢
timeout = 60

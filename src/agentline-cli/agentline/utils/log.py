from loguru import logger


def setup_log(log_path: str, level: str = "DEBUG") -> None:
    """
    配置 loguru：移除默认的 stderr 输出，只写入滚动日志文件。

    stderr 由状态显示独占，日志不能与其交错。

    :param log_path: 日志文件路径。
    :type log_path: str
    :param level: 最低日志级别。
    :type level: str
    """

    logger.remove()
    logger.add(log_path, level=level, rotation="10 MB", retention="10 days", compression="zip")

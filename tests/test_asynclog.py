import re
import threading
from unittest import mock

from tftplibs.asynclog import (
    LOGSIZE,
    PER_SECOND_MAX_MSG,
    AsyncLogger,
    MessageType,
    append_to_file,
    log_to_monitor,
)
from tftplibs.msgqueue import MessageQueue

STAMP = r" \[\d{2}/\d{2} \d{2}:\d{2}:\d{2}\.\d{3}\]"


def test_log_pushes_timestamped_message():
    queue = MessageQueue(10)
    logger = AsyncLogger(queue, level=5)
    text = logger.log(2, "hello %d", 42)
    assert re.fullmatch("hello 42" + STAMP, text)
    message = queue.pop()
    assert message.msg_type == MessageType.LOG
    assert message.data.decode() == text


def test_log_level_filter():
    queue = MessageQueue(10)
    logger = AsyncLogger(queue, level=2)
    assert logger.log(5, "too verbose") is None
    assert len(queue) == 0


def test_log_appends_to_file(tmp_path):
    path = tmp_path / "server.log"
    logger = AsyncLogger(MessageQueue(10), level=5, log_file=str(path))
    first = logger.log(1, "first")
    second = logger.log(1, "second")
    assert path.read_bytes() == (first + "\r\n" + second + "\r\n").encode()


def test_log_truncated_to_logsize():
    logger = AsyncLogger(MessageQueue(10), level=5)
    text = logger.log(1, "x" * 2000)
    assert len(text) == LOGSIZE - 1
    assert re.search(STAMP + "$", text)


def test_pacing_drops_excess_messages():
    queue = MessageQueue(1000)
    logger = AsyncLogger(queue, level=5)
    with mock.patch("time.time", return_value=1000.0), mock.patch("time.sleep"):
        results = [logger.log(1, "msg %d", n) for n in range(150)]
    accepted = [r for r in results if r is not None]
    assert len(accepted) == PER_SECOND_MAX_MSG + 1
    assert len(queue) == PER_SECOND_MAX_MSG + 1


def test_error_and_warning_types():
    queue = MessageQueue(10)
    logger = AsyncLogger(queue)
    assert logger.error("bad %s", "thing") == "bad thing"
    assert logger.warning("careful") == "careful"
    first, second = queue.pop(), queue.pop()
    assert (first.msg_type, first.data) == (MessageType.ERROR, b"bad thing")
    assert (second.msg_type, second.data) == (MessageType.WARNING, b"careful")


def test_full_queue_does_not_raise():
    queue = MessageQueue(1)
    logger = AsyncLogger(queue, level=5)
    with mock.patch("time.sleep"):
        assert logger.error("lost") == "lost"
    assert len(queue) == 0


def test_append_to_file_returns_bytes_written(tmp_path):
    path = tmp_path / "a.log"
    assert append_to_file(path, "abc") == len("abc\r\n")
    assert append_to_file(path, "de") == len("de\r\n")
    assert path.read_bytes() == b"abc\r\nde\r\n"


def test_append_to_file_failure_returns_zero(tmp_path):
    with mock.patch("time.sleep"):
        assert append_to_file(tmp_path / "missing" / "a.log", "x") == 0


def test_log_to_monitor_tags_thread():
    text = log_to_monitor("value %s\n", "v")
    assert text == f"Th{threading.get_native_id():5d} :value v\n"
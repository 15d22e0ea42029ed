import pytest

from audioindex.api import IndexAPI, IndexNotReadyError, RecordNotFoundError
from audioindex.builder import Builder
from audioindex.cache import Cache
from audioindex.taskqueue import TaskQueue, TaskType
from audioindex.utils import extract_file_meta


def _wav(payload_len: int, bytes_per_sec: int) -> bytes:
    header = bytearray(44)
    header[0:4] = b"RIFF"
    header[8:12] = b"WAVE"
    header[20:22] = (1).to_bytes(2, "little")
    header[28:32] = bytes_per_sec.to_bytes(4, "little")
    return bytes(header) + b"\0" * payload_len


@pytest.fixture
def env(tmp_path):
    cache = Cache(max_entries=64)
    builder = Builder(cache)
    queue = TaskQueue(builder)
    api = IndexAPI(cache, queue, wait_seconds=0.05, poll_interval=0.01)
    first = _wav(156, 100)
    second = _wav(356, 200)
    (tmp_path / "audio1 2025-06-09 14:30:45.wav").write_bytes(first)
    (tmp_path / "b.wav").write_bytes(second)
    builder.scan_directory(str(tmp_path))
    return str(tmp_path), api, queue, first, second


def test_file_size(env):
    directory, api, _, first, _ = env
    assert api.get_size(f"{directory}/audio1 2025-06-09 14:30:45.wav") == len(first)


def test_directory_size_is_sum(env):
    directory, api, _, first, second = env
    assert api.get_size(directory + "/") == len(first) + len(second)


def test_file_and_directory_duration(env):
    directory, api, *_ = env
    path_a = f"{directory}/audio1 2025-06-09 14:30:45.wav"
    path_b = f"{directory}/b.wav"
    dur_a = api.get_duration(path_a)
    dur_b = api.get_duration(path_b)
    assert dur_a == extract_file_meta(path_a).duration
    assert api.get_duration(directory + "/") == dur_a + dur_b


def test_get_record_fields(env):
    directory, api, *_ = env
    record = api.get_record(f"{directory}/audio1 2025-06-09 14:30:45.wav")
    assert record["fn"] == "audio1 2025-06-09 14:30:45.wav"
    assert record["aud"]["ch"] == 1
    assert record["aud"]["yy"] == 25
    assert record["aud"]["hh"] == 14
    assert record["del"] is False


def test_get_record_returns_copy(env):
    directory, api, *_ = env
    path = f"{directory}/b.wav"
    record = api.get_record(path)
    record["sz"] = -1
    assert api.get_record(path)["sz"] == api.get_size(path)
    assert api.get_size(path) >= 0


def test_missing_record(env):
    directory, api, *_ = env
    with pytest.raises(RecordNotFoundError):
        api.get_record(f"{directory}/nope.wav")
    with pytest.raises(RecordNotFoundError):
        api.get_size(f"{directory}/nope.wav")


def test_path_without_directory(env):
    _, api, *_ = env
    with pytest.raises(ValueError):
        api.get_record("plain.wav")


def test_unknown_directory_reports_zero(env, tmp_path):
    _, api, *_ = env
    empty = tmp_path / "empty"
    empty.mkdir()
    assert api.get_size(str(empty) + "/") == 0


def test_index_not_ready(tmp_path):
    def broken_clock():
        raise OSError("clock unavailable")

    cache = Cache(max_entries=64, clock=broken_clock)
    queue = TaskQueue(Builder(cache))
    api = IndexAPI(cache, queue, wait_seconds=0.05, poll_interval=0.01)
    with pytest.raises(IndexNotReadyError):
        api.get_size(str(tmp_path) + "/")
    assert len(queue) == 1
    assert queue.process_one(timeout=0.1).type is TaskType.RESCAN_DIR


def test_schedule_task_and_sync(env):
    directory, api, queue, *_ = env
    api.schedule_task(TaskType.UPDATE_FILE, f"{directory}/b.wav")
    api.schedule_task_sync(TaskType.RESCAN_DIR, directory)
    assert len(queue) == 2
    assert queue.process_one(timeout=1).type is TaskType.RESCAN_DIR
    assert queue.process_one(timeout=1).type is TaskType.UPDATE_FILE
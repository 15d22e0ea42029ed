# audioindex

`audioindex` keeps a small index file named `index` in each directory of
audio recordings. The index is a MessagePack map. It has three keys:

- `records`: a list with one record per file, holding `idx`, `sz` (size),
  `t` (type: 0 unknown, 1 WAV, 2 MP3), `arc`, `del` and `fn` (file name). Each
  record also has a nested `aud` map with `dur`, `ch`, `yy`, `MM`, `dd`, `hh`,
  `mm`, `ss`, `cdc`, `audr`, `radr`, `opo` and `opopl`.
- `size`: the running total of file sizes.
- `duration`: the running total of durations.

Paths are plain strings with `/` separators.

## Installation

```
pip install .
```

To run the test suite with `pytest`, install the `test` extra: `pip install .[test]`.

## Modules

### `audioindex.utils`

- `extract_file_meta(path)` reads a file and returns a `FileMeta` with `size`, `duration`, `file_type` and `codec`.
  - A RIFF/WAVE header gives type 1. The duration is the file size divided by the header's bytes-per-second field. The codec is the format tag, as a string.
  - An `ID3` header gives type 2, with codec `mp3`.
  - Any other file gives type 0, with the file extension as its codec.
- `parse_aud_from_filename(name)` reads names such as `audio2 2025-06-09 14:30:45.wav`. It returns an `AudInfo` with `ch`, `year` (counted from 2000), `month`, `day`, `hour`, `minute` and `second`. It returns `None` if the name does not match.
- `tick_ms()` gives the milliseconds since start-up, wrapping at 32 bits.

### `audioindex.parser`

- `load(path)` reads an index file.
- `save(path, data)` writes one.
- Data that cannot be decoded raises `IndexParseError`.

### `audioindex.cache`

`Cache(max_entries=8, life_ms=10000, clock=tick_ms)` holds loaded indexes in memory.

- `acquire(directory)` returns the live index map.
  - If the directory has no index file, or the file cannot be read, the map starts empty.
  - When the cache is full, it drops the least recently used entry to make room.
- `mark_dirty(directory)` marks an index as changed. Changed indexes are saved to disk before they are dropped.
- `drop(directory)` and `drop_all()` remove entries from the cache.
- `flush_all()` saves every changed index and keeps the entries cached.
- `evict_expired()` drops entries that have been idle longer than `life_ms`.
- `start(interval)` runs `evict_expired()` on a background thread. `stop()` ends that thread.

### `audioindex.builder`

`Builder(cache)` works on the indexes held in a `Cache`.

- `scan_directory(directory)` adds records for the `.wav` and `.mp3` files in the directory that are not yet indexed. It does not descend into subdirectories. It returns the number of records added.
- `update_file(path, remove=False)` refreshes an existing record. With `remove=True` it marks the record deleted instead.
- `set_arc(path, on)` sets or clears the `arc` flag on both the `/rec/` and the `/arc/` copy of a file.
- Every change to a size or duration is added to the `size` and `duration` totals of the directory and of each parent path prefix.

### `audioindex.taskqueue`

`TaskQueue(builder, maxsize=16)` is a bounded queue of `Task` items. Each task has a `TaskType`:

- `UPDATE_FILE` runs `update_file`.
- `RESCAN_DIR` runs `scan_directory`.
- `ARC_FLAG` runs `set_arc` with `on=True`.

The queue has these methods:

- `enqueue(task_type, path, front=False)` adds a task. It blocks while the queue is full.
- `process_one(timeout)` runs a single task.
- `start()` and `stop()` control a worker thread that runs the tasks.
- A task that fails is logged; the error is not raised.

### `audioindex.api`

`IndexAPI(cache, queue, wait_seconds=5.0, poll_interval=0.1)` answers queries. A path that ends in `/` is a directory.

- `get_size(path)` and `get_duration(path)` give a directory's totals or a single file's value.
- `get_record(path)` returns a copy of a file's record. If the file has no record, it raises `RecordNotFoundError`.
- If the cache cannot supply an index, the API queues a rescan at the front of the queue. It then polls until `wait_seconds` has passed. If the index is still missing, it raises `IndexNotReadyError`.
- `schedule_task(type, path)` queues a task at the back. `schedule_task_sync(type, path)` queues one at the front. Neither waits for the task to run.

## Example

```python
from audioindex.cache import Cache
from audioindex.builder import Builder
from audioindex.taskqueue import TaskQueue, TaskType
from audioindex.api import IndexAPI

cache = Cache()
builder = Builder(cache)
builder.scan_directory("/data/rec")

queue = TaskQueue(builder)
queue.start()
api = IndexAPI(cache, queue)

print(api.get_size("/data/rec/"))
record = api.get_record("/data/rec/audio1 2025-06-09 14:30:45.wav")
print(record["aud"]["dur"])

api.schedule_task(TaskType.ARC_FLAG, "/data/rec/audio1 2025-06-09 14:30:45.wav")

queue.stop()
cache.flush_all()
```

## What it does not do

- The package has no command-line tool.
- It does not watch the file system. Indexes change only when `Builder` methods run, whether you call them directly or through the task queue.
- Changes reach disk only when an entry is evicted or dropped, or when `flush_all()` is called.
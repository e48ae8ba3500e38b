# pagemem

`pagemem` is the main-memory module of a small teaching operating system.
It runs as a TCP server. A kernel and one or more CPUs connect to it and ask it to:

- create and finish processes,
- hand out instructions,
- translate page-table entries to frame numbers,
- read and write user memory,
- move processes to and from a swap file,
- write memory dumps.

It needs nothing beyond the Python standard library (Python 3.10 or later).

## Running the server

```
pagemem
```

By default the server reads its settings from `memoria.config` in the working
directory. Another file can be given as the only argument:

```
pagemem path/to/memoria.config
```

It logs to `memoria.log` and to the console, and stops on Ctrl-C.

The configuration file holds plain `KEY=VALUE` lines. Blank lines and lines
starting with `#` are ignored. Every key below is required; a missing key, a
non-integer number, an unknown log level or a non-positive page size raises
`pagemem.config.ConfigError`.

| Key                  | Meaning                                                         |
|----------------------|-----------------------------------------------------------------|
| `PUERTO_ESCUCHA`     | TCP port to listen on                                           |
| `LOG_LEVEL`          | `TRACE`, `DEBUG`, `INFO`, `WARNING` or `ERROR` (any case)       |
| `TAM_MEMORIA`        | size of user memory in bytes                                    |
| `TAM_PAGINA`         | page (and frame) size in bytes                                  |
| `ENTRADAS_POR_TABLA` | entries in every page table                                     |
| `CANTIDAD_NIVELES`   | number of page-table levels                                     |
| `RETARDO_MEMORIA`    | delay in milliseconds before each answer                        |
| `PATH_SWAPFILE`      | path of the swap file; it is emptied at start-up                |
| `PATH_INSTRUCCIONES` | prefix put before instruction file names                        |
| `RETARDO_SWAP`       | delay in milliseconds for each swap read or write               |
| `DUMP_PATH`          | prefix put before dump file names (`<pid>-<timestamp>.dmp`)     |

The two path prefixes are joined to file names as they are, so a directory
needs its trailing `/`.

## How clients talk to it

Every connection starts with a handshake (`pagemem.sockets`). The client
sends its module id from `ClientModule` (`KERNEL`, `CPU`, `MEMORIA`, `IO`)
and the server answers `0` to accept it or `-1` to reject it. The server only
serves `KERNEL` and `CPU`; other connections are closed.

A kernel connection carries one `pagemem.mem_requests.KernelRequest`, whose
`KernelOperation` is one of:

- `INIT_PROCESS`: reserve frames for `size` bytes and load the instruction file `path`,
- `FINISH_PROCESS`: free the process and log its metrics,
- `DUMP_PROCESS`: write its pages to a dump file,
- `SWAP_OUT`: move its pages to the swap file and free its frames,
- `SWAP_IN`: bring its pages back into free frames.

The server answers with a signal, `1` for success and `0` for failure, and
then closes the connection.

A CPU connection first receives a `pagemem.paging_info.PagingInfo` holding
the page size, the number of entries per table and the number of levels.
After that the CPU sends `pagemem.mem_requests.CpuRequest` values in a loop,
built with:

- `CpuRequest.fetch_instruction(pid, program_counter)`: answered with a
  message holding the instruction (empty if there is none),
- `CpuRequest.frame_number(pid, entries_per_level)`: the entries are a
  space-separated string, one number per level; answered with a signal
  holding the frame, `-1` if the page has no frame, `-2` if the process has
  no tables or an entry is out of range,
- `CpuRequest.read(pid, physical_address, size)`: answered with a
  `pagemem.mem_response.BufferResponse` (`MemResult.SUCCEEDED` with the bytes,
  or `MemResult.FAILED`),
- `CpuRequest.write(pid, physical_address, data)`: answered with a signal,
  `1` or `0`.

A read or write must stay inside one frame; one that runs past the end of its
frame fails.

On the wire everything is framed by `pagemem.protocol`, with little-endian
32-bit integers. There are three kinds of frame (`OpCode`):

- **Packet**: op code, buffer length, then items each preceded by its size
  (`Packet`, `send_packet`, `recv_packet`).
- **Signal**: op code and one signed 32-bit integer (`send_signal`, `recv_signal`).
- **Message**: op code, length and a NUL-terminated string (`send_message`, `recv_message`).

A closed connection or an unexpected frame raises `ProtocolError`.

## Using the pieces directly

The memory model can be used without the network layer:

```python
from pagemem.config import load_config
from pagemem.system import MemorySystem

config = load_config("memoria.config")
system = MemorySystem(config)

system.create_process(1, 256, "program.txt")
print(system.fetch_instruction(1, 0))

system.write(1, 0, b"hello")
print(system.read(1, 0, 5))

system.swap_out(1)
system.swap_in(1)
system.dump(1)
system.finish_process(1)
```

`MemorySystem` methods return `True`/`False` as the server's answers do;
a missing instruction file raises `OSError`.

The building blocks each live in their own module:

| Module                   | What it holds                                                   |
|--------------------------|-----------------------------------------------------------------|
| `pagemem.frames`         | `FrameBitmap`, free and used frames, lowest free frames first   |
| `pagemem.page_tables`    | `PageTables`, the multi-level page tables of every process      |
| `pagemem.user_memory`    | `UserMemory`, the flat byte array behind the frames             |
| `pagemem.swap`           | `SwapArea`, the swap file and where each process sits in it     |
| `pagemem.dump`           | `write_dump`, `dump_file_name`                                  |
| `pagemem.metrics`        | `MetricsRegistry` of `ProcessMetrics`, per-process counters     |
| `pagemem.logger`         | `setup_logger` and the service's log lines                      |
| `pagemem.server`         | `MemoryServer` and the `main` entry point                       |
| `pagemem.mlist`          | `MutexList`, a lock-guarded list                                |
| `pagemem.mqueue`         | `MutexQueue`, a lock-guarded queue                              |
| `pagemem.strings`        | small string helpers                                            |

## What it does not do

`pagemem` is only the memory service. It has no kernel, CPU or I/O device of
its own. `pagemem.execution` (`Eviction`, `ExecutionRequest`) and
`pagemem.io_messages` (`IoRequest`, `IoEndReason`) define the messages those
other modules exchange, with functions to send and receive them, but nothing
in this package serves them.
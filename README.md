# tftplibs

Building blocks for a TFTP/DHCP server suite, usable on their own:

- `tftplibs.cmdline`: splits a raw command line into words, where double
  quotes group words that contain spaces, and picks out the server options
  `-s` (directory), `-l` (log file) and `-i` (INI file). With
  `service_edition=True` it also picks out `-h` (host) and `-p` (password).
  See `split_command_line`, `parse_command_line` and `CommandLineOptions`.
- `tftplibs.msgqueue`: a bounded, thread-safe FIFO of typed messages. Each
  message gets an identifier, counting up from 1. See `MessageQueue`,
  `Message` and `QueueFull`.
- `tftplibs.hexdump`: hex and ASCII dumps with 16 bytes per line. See
  `hex_dump_lines` and `bin_dump`. `bin_dump` writes to standard error
  unless it is given another stream.
- `tftplibs.scandir`: yields one `name<TAB>dd/mm/yyyy<TAB>size` line for
  each file in a directory and skips subdirectories. See `scan_dir` and
  `is_valid_directory`.
- `tftplibs.md5`: an incremental MD5 message digest. See `MD5` and
  `md5_digest`.
- `tftplibs.settings_store`: reads and writes settings in an INI file. When
  a key is absent from the INI file, or the file does not exist, it falls
  back to the Windows registry under `HKEY_LOCAL_MACHINE`, where there is a
  registry. See `read_key`, `save_key` and `ValueType`.
- `tftplibs.tcp4u`: TCP helpers, including length-prefixed ("PP") framing
  with a 16-bit big-endian length, and a one-shot UDP sender. See
  `get_listen_socket`, `tcp_connect`, `tcp_send`, `tcp_recv`, `pp_send`,
  `pp_recv`, `udp_send`, `WAIT_FOREVER` and `DONT_WAIT`.
- `tftplibs.challenge`: a symmetric challenge exchange, run right after a
  TCP connection is made, that checks the protocol version and a shared
  key. See `exchange_challenge` and `sym_crypt`.
- `tftplibs.ping`: ICMP echo packets, the Internet checksum and a
  raw-socket ping. See `ping`, `PingResult`, `in_cksum`,
  `build_echo_request` and `parse_echo_reply`.
- `tftplibs.asynclog`: a leveled logger that pushes timestamped lines onto a
  `MessageQueue` and appends them to a log file. It accepts at most 101
  lines per second. See `AsyncLogger`, `MessageType`, `append_to_file` and
  `log_to_monitor`.

The package needs nothing outside the standard library and runs on Python
3.10 and later.

## Examples

Parsing a command line:

```python
from tftplibs.cmdline import split_command_line, parse_command_line

words = split_command_line('-s "C:\\tftp root" -l tftp.log')
# ['-s', 'C:\\tftp root', '-l', 'tftp.log']
options = parse_command_line('-s "C:\\tftp root" -l tftp.log')
# options.directory == 'C:\\tftp root', options.log_file == 'tftp.log'
```

Passing messages between threads:

```python
from tftplibs.msgqueue import MessageQueue

queue = MessageQueue(300)
msg_id = queue.push(b"hello", 0)
message = queue.pop()      # Message(msg_id=1, data=b'hello', msg_type=0)
```

Dumping a buffer:

```python
from tftplibs.hexdump import hex_dump_lines

for line in hex_dump_lines(b"\x00\x01GET /file", "rx"):
    print(line)
```

Hashing data:

```python
from tftplibs.md5 import MD5, md5_digest

digest = md5_digest(b"abc")
hasher = MD5(b"a")
hasher.update(b"bc")
print(hasher.hexdigest())  # 900150983cd24fb0d6963f7d28e17f72
```

Keeping settings in an INI file. `save_key` writes to the INI file only if
the file already exists:

```python
from pathlib import Path
from tftplibs.settings_store import ValueType, read_key, save_key

ini = Path("server.ini")
ini.touch()
save_key("SOFTWARE\\Example\\Settings", "Port", 69, ini)
port = read_key("SOFTWARE\\Example\\Settings", "Port", ValueType.DWORD, ini)  # 69
```

Logging from worker threads:

```python
from tftplibs.asynclog import AsyncLogger
from tftplibs.msgqueue import MessageQueue

logger = AsyncLogger(MessageQueue(300), level=5, log_file="server.log")
logger.log(2, "read request for %s", "boot.img")
logger.error("cannot open %s", "boot.img")
```

Scrambling a challenge with a shared key. Applying `sym_crypt` twice gives
the data back:

```python
from tftplibs.challenge import sym_crypt

scrambled = sym_crypt(b"challenge", "secret")
assert sym_crypt(scrambled, "secret") == b"challenge"
```

Computing an ICMP checksum:

```python
from tftplibs.ping import in_cksum

checksum = in_cksum(b"\x08\x00\x00\x00\x00\xd8\x00\x01")
```

Sending a real ping needs a raw socket, which most systems only grant to
privileged users. Without that right, `ping` raises `PingPrivilegeError`.

## Errors

Failures are raised as exceptions, not returned as codes:

- `QueueFull` when a message queue stays full.
- `TcpError` and its subclasses `TcpTimeout`, `TcpOverflow` and
  `TcpSocketClosed` for the TCP helpers.
- `VersionMismatch` and `BadAuthentication`, both subclasses of `TcpError`,
  for the challenge exchange.
- `PingError` and its subclasses `PingTimeout`, `PingUnreachable`,
  `PingTtlExpired` and `PingPrivilegeError` for ping.
- `OSError` from `save_key` when there is neither an INI file nor a registry
  to write to.

## What this package does not do

This is a library of parts. It contains no TFTP, DHCP, SNTP, DNS or syslog
server, no graphical console and no command to start any of them. The
logger only puts messages on a queue; a program using it must pop and
display them itself.
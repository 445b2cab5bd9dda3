"""Parts for a TFTP/DHCP server suite: command line, queues, dumps, settings, TCP, ping and logging."""

__version__ = "0.1.0"

__all__ = [
    "asynclog",
    "challenge",
    "cmdline",
    "hexdump",
    "md5",
    "msgqueue",
    "ping",
    "scandir",
    "settings_store",
    "tcp4u",
]
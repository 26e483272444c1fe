"""Apple-1 address space and RAM file transfer."""

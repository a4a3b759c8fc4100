"""flangbuild — configure, build and install LLVM Flang for the host."""

__version__ = "0.1.0"

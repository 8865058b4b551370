"""fstabgen: translate fstab(5) and the kernel command line into systemd units."""

__version__ = "0.1.0"

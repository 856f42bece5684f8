"""Tennis Autobook – court booking with scheduling, watching and auto-cancel."""

"""Binary container formats."""

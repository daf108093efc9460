"""
Infrastructure layer package.

Contains external system integrations: WinRM remoting, admin-share mounts,
connectivity probes, downloads, inventory, configuration and logging.
"""

"""
SakuraCloud instance provisioning plugin.
"""

__version__ = "0.1.0"

PLUGIN_NAME = "infrakit-instance-sakuracloud"
PLUGIN_URL = "https://github.com/sacloud/infrakit.sakuracloud"

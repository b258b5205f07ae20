"""
OS types of the SakuraCloud public archives.
"""

from enum import Enum


class ArchiveOSType(str, Enum):
    CENTOS = "centos"
    UBUNTU = "ubuntu"
    DEBIAN = "debian"
    VYOS = "vyos"
    COREOS = "coreos"
    RANCHEROS = "rancheros"
    KUSANAGI = "kusanagi"
    SITE_GUARD = "site-guard"
    PLESK = "plesk"
    FREEBSD = "freebsd"
    WINDOWS2012 = "windows2012"
    WINDOWS2012_RDS = "windows2012-rds"
    WINDOWS2012_RDS_OFFICE = "windows2012-rds-office"
    WINDOWS2016 = "windows2016"
    WINDOWS2016_RDS = "windows2016-rds"
    WINDOWS2016_RDS_OFFICE = "windows2016-rds-office"
    WINDOWS2016_SQL_SERVER_WEB = "windows2016-sql-web"
    WINDOWS2016_SQL_SERVER_STANDARD = "windows2016-sql-standard"
    CUSTOM = "custom"

    @classmethod
    def from_str(cls, os_type: str) -> "ArchiveOSType":
        """Look up an OS type by its short name; unknown names map to CUSTOM."""
        try:
            member = cls(os_type)
        except ValueError:
            return cls.CUSTOM
        return member

    @property
    def is_windows(self) -> bool:
        return self in _WINDOWS_TYPES


_WINDOWS_TYPES = frozenset(
    {
        ArchiveOSType.WINDOWS2012,
        ArchiveOSType.WINDOWS2012_RDS,
        ArchiveOSType.WINDOWS2012_RDS_OFFICE,
        ArchiveOSType.WINDOWS2016,
        ArchiveOSType.WINDOWS2016_RDS,
        ArchiveOSType.WINDOWS2016_RDS_OFFICE,
        ArchiveOSType.WINDOWS2016_SQL_SERVER_WEB,
        ArchiveOSType.WINDOWS2016_SQL_SERVER_STANDARD,
    }
)

# Short names accepted as OSType
OS_TYPE_SHORT_NAMES = [t.value for t in ArchiveOSType if t is not ArchiveOSType.CUSTOM]

"""logstash-docket - documentation generator for Logstash plugins.

Builds the Logstash plugin reference from plugin releases published on
rubygems.org and their sources on GitHub: the current reference for a
Logstash build, and the versioned reference with a page per release.
"""

from docket.constants import VERSION

__version__ = VERSION

__all__ = ["__version__"]

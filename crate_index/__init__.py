"""
Index file generation for a package registry.

This package is responsible for:
* Reading packages, versions and dependencies through a swappable storage backend.
* Turning each version into the index record that package-manager clients resolve against.
* Encoding the records of a package as a line-delimited index file.
* Reporting packages that exist without any versions as an anomaly.
"""

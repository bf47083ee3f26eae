"""acl-bundle: signed ACL bundles over S3, HTTP and local files."""

__version__ = "0.1.0"

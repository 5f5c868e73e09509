"""s3cmd provisioning plugin.

Moves files to and from S3-compatible object storage by running the
external ``s3cmd`` client as a subprocess.
"""

__version__ = '0.1.0'

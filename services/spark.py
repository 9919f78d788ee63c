# services/spark.py
from __future__ import annotations
from typing import Dict

S3A = "s3a"
LAKEFS_FS = "lakefs"
FLAVOURS = (S3A, LAKEFS_FS)
SECRET_KEYS = ("spark.hadoop.fs.s3a.secret.key", "spark.hadoop.fs.lakefs.secret.key")


def build_spark_conf(
    endpoint: str,
    access_key_id: str,
    secret_access_key: str,
    flavour: str = S3A,
    storage_access_key_id: str = "",
    storage_secret_access_key: str = "",
) -> Dict[str, str]:
    """
    Spark properties for reading the repository through lakeFS.

    `s3a` talks to the lakeFS S3 gateway (paths look like
    s3a://<repo>/<branch>/...); `lakefs` uses the lakeFS Hadoop FileSystem
    (lakefs://<repo>/<branch>/...), which reads and writes objects on the
    store directly, so the s3a keys carry the store's own credentials
    (`storage_access_key_id` / `storage_secret_access_key`).
    """
    endpoint = endpoint.rstrip("/")
    if flavour == S3A:
        return {
            "spark.hadoop.fs.s3a.access.key": access_key_id,
            "spark.hadoop.fs.s3a.secret.key": secret_access_key,
            "spark.hadoop.fs.s3a.endpoint": endpoint,
            "spark.hadoop.fs.s3a.path.style.access": "true",
        }
    if flavour == LAKEFS_FS:
        return {
            "spark.hadoop.fs.lakefs.impl": "io.lakefs.LakeFSFileSystem",
            "spark.hadoop.fs.lakefs.access.key": access_key_id,
            "spark.hadoop.fs.lakefs.secret.key": secret_access_key,
            "spark.hadoop.fs.lakefs.endpoint": f"{endpoint}/api/v1",
            "spark.hadoop.fs.s3a.access.key": storage_access_key_id,
            "spark.hadoop.fs.s3a.secret.key": storage_secret_access_key,
        }
    raise ValueError(f"Unknown Spark config flavour '{flavour}', expected one of {FLAVOURS}")


def format_spark_conf(conf: Dict[str, str], mask_secrets: bool = True) -> str:
    """Render as `--conf key=value` lines, hiding secret values."""
    lines = []
    for key, value in conf.items():
        if mask_secrets and key in SECRET_KEYS and value:
            value = value[:4] + "*" * max(len(value) - 4, 4)
        lines.append(f"--conf {key}={value}")
    return "\n".join(lines)

import asyncio
import sys
from logger import configure_file_logging
from state import QuickstartConfig


async def run_wizard(config: QuickstartConfig):
    from app import QuickstartWizard
    from services.lakefs import LakeFSClient
    async with LakeFSClient(
        config.endpoint,
        config.access_key_id,
        config.secret_access_key,
        timeout=config.request_timeout,
    ) as client:
        return await QuickstartWizard(config, client).run_async()


def main():
    config = QuickstartConfig.from_env()
    if not config.has_credentials:
        print(
            "ERROR: set LAKEFS_ACCESS_KEY_ID and LAKEFS_SECRET_ACCESS_KEY "
            "(and LAKEFS_ENDPOINT if lakeFS is not on localhost:8000).",
            file=sys.stderr,
        )
        sys.exit(1)

    configure_file_logging(config.log_file)
    result = asyncio.run(run_wizard(config))
    if result is None:
        print("Quickstart cancelled.")
        sys.exit(1)

    from services.spark import format_spark_conf
    print(f"Repository '{result.repo_id}' is ready: {result.objects_url(config.endpoint)}")
    if result.import_source:
        print(f"Imported {result.imported_objects} objects from {result.import_source}")
    if result.spark_conf:
        print("Spark configuration:")
        print(format_spark_conf(result.spark_conf))
    sys.exit(0)

if __name__ == "__main__":
    main()

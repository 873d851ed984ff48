import asyncio
import os
from concurrent.futures import ThreadPoolExecutor

from loguru import logger

from pystrip import (
    IngestionWorker,
    RefreshScheduler,
    StripChart,
    StripContext,
    configure_logging,
    open_serial_device,
    read_sample_log,
)
from pystrip.config import merge_config

# --- User configuration dictionary ---
CONFIG = merge_config(
    {
        "EXPECTED_PORT": "/dev/ttyACM0",  # pulse sensor enumerates here
        "LOG_PATH": "./data/value_of_bpm.csv",
        "REPLAY_LOG": True,
        "LOG_LEVEL": "INFO",
    }
)
RUN_SECONDS = 60  # how long to monitor before saving the chart
SNAPSHOT_PATH = "./data/value_of_bpm.png"


async def monitor(context: StripContext, chart: StripChart) -> None:
    """Refresh the chart for RUN_SECONDS, then stop the scheduler."""
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="pystrip-lttb") as pool:
        scheduler = RefreshScheduler(
            context,
            chart,
            period=CONFIG["REFRESH_PERIOD"],
            target_points=CONFIG["TARGET_POINTS"],
            executor=pool,
            discard_stale=CONFIG["DISCARD_STALE"],
        )
        runner = asyncio.create_task(scheduler.run())
        await asyncio.sleep(RUN_SECONDS)
        scheduler.stop()
        await runner
    logger.info(
        f"{scheduler.ticks} ticks, {scheduler.installs} installs, {scheduler.failures} failures"
    )


def main() -> None:
    """
    Main function to monitor one sensor session.
    """
    configure_logging(CONFIG["LOG_LEVEL"])

    log_path = CONFIG["LOG_PATH"]
    previous = []
    if CONFIG["REPLAY_LOG"] and os.path.exists(log_path):
        previous = read_sample_log(log_path)

    context = StripContext.create(log_path, history=previous)

    worker = IngestionWorker(
        context,
        lambda: open_serial_device(
            port=CONFIG["PORT"],
            expected_port=CONFIG["EXPECTED_PORT"],
            baudrate=CONFIG["BAUDRATE"],
            timeout=CONFIG["READ_TIMEOUT"],
        ),
    )
    chart = StripChart(title=CONFIG["CHART_TITLE"])

    worker.start()
    try:
        asyncio.run(monitor(context, chart))
    finally:
        worker.stop()
        worker.join(timeout=CONFIG["READ_TIMEOUT"] * 2)
        context.close()

    chart.save(SNAPSHOT_PATH, bounds=CONFIG["CHART_SIZE"])
    logger.info(f"Store holds {len(context.store)} samples, status {context.status.value}")


if __name__ == "__main__":
    main()

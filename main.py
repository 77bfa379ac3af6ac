#!/usr/bin/env python3
"""
main.py
=======
Entry point for the smart traffic intersection.

Modes
-----
* default      pygame window; the frame loop drives the simulation
* ``--headless``   background tick thread, no window
* ``--serve``      only the FastAPI scheduling backend (``ml.api``)

Every ``config`` default can be overridden with a ``TRAFFIC_*``
environment variable; command-line flags win over both.
"""

import argparse
import logging
import os
import time
from typing import Optional

import config
from logging_setup import setup_logging

log = logging.getLogger("main")


def _env(name: str, default, cast=str):
    raw = os.environ.get(f"TRAFFIC_{name}")
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        log.warning("Ignoring TRAFFIC_%s=%r (expected %s)", name, raw, cast.__name__)
        return default


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Smart traffic intersection simulator")
    parser.add_argument("--headless", action="store_true",
                        help="run without the pygame window")
    parser.add_argument("--serve", action="store_true",
                        help="run only the scheduling backend (FastAPI)")
    parser.add_argument("--duration", type=float,
                        default=_env("DURATION_S", config.DEFAULT_DURATION_S, float),
                        help="headless run time in seconds (0 = until Ctrl+C)")
    parser.add_argument("--seed", type=int,
                        default=_env("SEED", config.DEFAULT_SEED, int))
    parser.add_argument("--tick-rate", type=float,
                        default=_env("TICK_RATE_HZ", config.DEFAULT_TICK_RATE_HZ, float))
    parser.add_argument("--label-source", choices=("static", "http", "model"),
                        default=_env("LABEL_SOURCE", "http"),
                        help="where the scheduling label comes from")
    parser.add_argument("--backend-url",
                        default=_env("BACKEND_URL", config.BACKEND_URL))
    parser.add_argument("--port", type=int,
                        default=_env("BACKEND_PORT", config.BACKEND_PORT, int))
    parser.add_argument("--data-dir",
                        default=_env("DATA_DIR", os.path.join(_project_root(), config.DATA_DIR_REL_PATH)))
    parser.add_argument("--no-forward", action="store_true",
                        help="do not post records and samples to the backend")
    parser.add_argument("--no-auto-spawn", action="store_true",
                        help="spawn vehicles only on key press / API call")
    parser.add_argument("--autostart", action="store_true",
                        help="start the simulation immediately")
    parser.add_argument("--debug", action="store_true")
    return parser


def _project_root() -> str:
    return os.path.abspath(os.path.dirname(__file__))


def _build_label_source(args):
    from sim.label_source import HttpLabelSource, ModelLabelSource, StaticLabelSource

    if args.label_source == "http":
        return HttpLabelSource(
            args.backend_url,
            interval_s=config.PREDICTION_INTERVAL_S,
            timeout_s=config.HTTP_TIMEOUT_S,
        )
    if args.label_source == "model":
        from ml.scheduler_model import SchedulingPredictor

        predictor = SchedulingPredictor(os.path.join(args.data_dir, config.MODEL_FILE_NAME))
        return ModelLabelSource(predictor.predict_label, interval_s=config.PREDICTION_INTERVAL_S)
    return StaticLabelSource()


def serve(args) -> None:
    import uvicorn

    from ml.api import create_app

    log.info("Scheduling backend on port %d (data in %s)", args.port, args.data_dir)
    uvicorn.run(create_app(args.data_dir), host=config.BACKEND_HOST, port=args.port)


def run_simulation(args, log_pane=None) -> None:
    from dataclasses import replace

    from bus import EventBus, TelemetryForwarder
    from sim.sim_bridge import SimBridge
    from sim.traffic_policy import SimulationPolicy

    policy = SimulationPolicy()
    if args.no_auto_spawn:
        policy = replace(policy, auto_spawn_enabled=False)

    bus = EventBus(max_queue=config.BUS_MAX_QUEUE)
    bridge = SimBridge(
        tick_rate_hz=args.tick_rate,
        policy=policy,
        label_source=_build_label_source(args),
        bus=bus,
        random_seed=args.seed,
        data_log_interval_s=config.DATA_LOG_INTERVAL_S,
    )

    forwarder: Optional[TelemetryForwarder] = None
    if not args.no_forward:
        forwarder = TelemetryForwarder(
            bus,
            args.backend_url,
            poll_interval_s=config.FORWARD_POLL_INTERVAL_S,
            train_interval_s=config.TRAIN_INTERVAL_S,
            timeout_s=config.HTTP_TIMEOUT_S,
        )
        forwarder.start()

    headless = args.headless
    bridge.start(threaded=headless)
    if args.autostart or headless:
        bridge.start_simulation()

    try:
        if headless:
            started = time.monotonic()
            while args.duration <= 0 or time.monotonic() - started < args.duration:
                time.sleep(1.0)
                stats = bridge.get_snapshot().stats
                log.debug(
                    "vehicles=%d passed=%d waiting=%d accidents=%d",
                    stats.total_vehicles, stats.vehicles_passed,
                    stats.current_waiting, stats.accidents,
                )
        else:
            from ui import run_pygame_view

            run_pygame_view(bridge, fps=config.TARGET_FPS, drive=True, log_pane=log_pane)
    except KeyboardInterrupt:
        log.info("Shutting down...")
    finally:
        bridge.stop()
        if forwarder is not None:
            forwarder.stop()
        stats = bridge.get_snapshot().stats
        log.info(
            "Final: %d vehicles, %d passed, %d violations, %d accidents, efficiency %.1f%%",
            stats.total_vehicles, stats.vehicles_passed, stats.rule_violations,
            stats.accidents, stats.traffic_efficiency,
        )
        metrics = bridge.bus_metrics()
        log.info(
            "Bus: %d published, %d delivered, %d dropped",
            metrics["published"], metrics["delivered"], metrics["dropped"],
        )


def main(argv=None) -> None:
    args = build_parser().parse_args(argv)

    log_pane = None
    if not (args.headless or args.serve):
        from ui.log_pane import LogPaneHandler

        log_pane = LogPaneHandler(capacity=config.LOG_PANE_CAPACITY)
    setup_logging(
        logging.DEBUG if args.debug else logging.INFO,
        extra_handlers=[log_pane] if log_pane is not None else None,
    )
    log.info("Starting traffic intersection...")

    if args.serve:
        serve(args)
        return
    run_simulation(args, log_pane=log_pane)


if __name__ == "__main__":
    main()

"""
Command-Line Entry Point
========================
Runs the simulation without a user interface.

Why is this file needed?
------------------------
It acts as the composition root for headless use. It:
1. Sets up logging.
2. Generates the bar magnet field data asset (`generate-field-data`).
3. Builds a scene, runs it for a while and stores or plots what happened (`run`).

Usage:
    $ python -m faradaylab generate-field-data
    $ python -m faradaylab run generator --seconds 10 --flow-rate 50 --plot
"""
import argparse
import logging
from typing import Optional, Sequence

from faradaylab import config
from faradaylab.analysis.electromagnet import CurrentSourceType, Electromagnet
from faradaylab.analysis.field_data import generate_bar_magnet_field_data
from faradaylab.analysis.magnets import Turbine
from faradaylab.logging_config import setup_logging
from faradaylab.model.io import save_field_data, save_run_record
from faradaylab.model.state import SceneType
from faradaylab.solvers.solver import create_scene

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="faradaylab", description="Electromagnetic induction simulation.")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None, help="Also write the log to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate-field-data", help="Compute and save the bar magnet field tables.")
    generate.add_argument("--output", default=config.FIELD_DATA_PATH, help="Destination .h5 file.")
    generate.add_argument("--radial-points", type=int, default=20)
    generate.add_argument("--angular-points", type=int, default=48)

    run = subparsers.add_parser("run", help="Run a scene and record its outputs.")
    run.add_argument("scene", choices=[s.value for s in SceneType])
    run.add_argument("--seconds", type=float, default=10.0)
    run.add_argument("--flow-rate", type=float, default=None, help="Turbine water flow in percent (generator).")
    run.add_argument("--ac", action="store_true", help="Drive the electromagnet with the AC supply.")
    run.add_argument("--output", default=None, help="Save the recorded run to this .h5 file.")
    run.add_argument("--plot", action="store_true", help="Plot the recorded run.")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, log_file=args.log_file)

    if args.command == "generate-field-data":
        data = generate_bar_magnet_field_data(n_radial=args.radial_points, n_angular=args.angular_points)
        save_field_data(data, args.output)
        return

    scene = create_scene(SceneType(args.scene))
    if args.flow_rate is not None:
        if not isinstance(scene.magnet, Turbine):
            raise SystemExit("--flow-rate applies to the generator scene only.")
        scene.magnet.set_flow_rate(args.flow_rate)
    if args.ac:
        if not isinstance(scene.magnet, Electromagnet):
            raise SystemExit("--ac applies to the electromagnet and transformer scenes only.")
        scene.magnet.set_current_source(CurrentSourceType.AC)

    record = scene.start_recording()
    ticks = scene.run(args.seconds)
    logger.info(f"Ran {ticks} ticks of '{args.scene}'")
    for name, values in record.channels.items():
        if values:
            logger.info(f"{name}: last={values[-1]:.6g} min={min(values):.6g} max={max(values):.6g}")

    if args.output:
        save_run_record(record, args.output)
    if args.plot:
        record.plot()


if __name__ == "__main__":
    main()

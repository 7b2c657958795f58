import logging
import sys

from pydantic_settings import CliApp

from rigid_registration.frame_series import FrameSeriesRegistration
from rigid_registration.parameters import RegistrationParameters


def main(args: list[str]) -> None:
    params = CliApp.run(RegistrationParameters, cli_args=args)
    log_level = logging.DEBUG if params.verbose else logging.INFO
    logging.basicConfig(level=log_level)
    # tifffile and PIL debug logs are very spammy
    logging.getLogger("tifffile").setLevel(logging.INFO)
    logging.getLogger("PIL").setLevel(logging.INFO)
    FrameSeriesRegistration(params).run()


def _cli() -> None:
    main(sys.argv[1:])


if __name__ == "__main__":
    _cli()

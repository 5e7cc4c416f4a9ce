import pytest

from scripts.route_preview import main, parse_args


def test_parse_args_accepts_western_hemisphere_origin() -> None:
    args = parse_args(["--origin", "-58.40", "-34.60", "Obelisco"])

    assert args.origin == [-58.40, -34.60]
    assert args.query == "Obelisco"
    assert not args.verbose


def test_parse_args_requires_both_origin_values() -> None:
    with pytest.raises(SystemExit) as raised:
        parse_args(["--origin", "-58.40", "Obelisco"])

    assert raised.value.code == 2


@pytest.mark.asyncio
async def test_main_rejects_out_of_range_origin() -> None:
    assert await main(["--origin", "-200", "10", "Obelisco"]) == 2

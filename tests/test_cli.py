import os

import numpy as np
import pandas as pd
import pytest
from PIL import Image

from config import parse_args
from main import inclination_range, main
from luminet.blackhole import ConfigurationError
from visualization.dither import DitherAlgorithm


def test_defaults():
    args = parse_args(['flux', 'out.png'])
    assert args.command == 'flux'
    assert args.inclination == 80.0
    assert args.samples == 200_000
    assert (args.width, args.height) == (2048, 1080)
    assert args.accretion_rate == pytest.approx(1e-7)
    assert args.disk_outer_edge == 50.0

    args = parse_args(['isoradials', 'out.png'])
    assert args.direct_radii == [6.0, 10.0, 20.0, 30.0]
    assert args.ghost_radii == [6.0, 10.0, 30.0, 10000.0]

    args = parse_args(['dither', 'in.png', 'out.png'])
    assert args.algorithm is DitherAlgorithm.BLUE_NOISE

    args = parse_args(['flux-range', 'frames', 'incl_'])
    assert (args.start, args.end, args.step) == (10.0, 80.0, 10.0)
    assert (args.directory, args.prefix) == ('frames', 'incl_')


def test_dither_help_names_mask_command(capsys):
    with pytest.raises(SystemExit):
        parse_args(['dither', '-h'])
    assert 'luminet blue-noise' in ' '.join(capsys.readouterr().out.split())


def test_dither_algorithm_choice():
    assert parse_args(['dither', '-a', 'riemersma', 'a.png', 'b.png']).algorithm is DitherAlgorithm.RIEMERSMA
    with pytest.raises(SystemExit):
        parse_args(['dither', '-a', 'ordered', 'a.png', 'b.png'])


def test_inclination_range():
    assert inclination_range(10.0, 80.0, 10.0) == [10.0, 20.0, 30.0, 40.0, 50.0, 60.0, 70.0, 80.0]
    assert inclination_range(30.0, 10.0, 5.0) == []
    with pytest.raises(ConfigurationError):
        inclination_range(10.0, 80.0, 0.0)


def test_flux_command(tmp_path):
    out_path = tmp_path / 'flux.png'
    status = main(['flux', '-s', '400', '--width', '48', '--height', '24', '--workers', '1', '--seed', '2',
                   str(out_path)])
    assert status == 0
    with Image.open(out_path) as img:
        assert img.size == (48, 24)
        assert np.array(img).max() > 0


def test_flux_range_command(tmp_path):
    status = main(['flux-range', '--start', '40', '--end', '60', '--step', '20', '-s', '300',
                   '--width', '32', '--height', '16', '--workers', '1', str(tmp_path), 'frame_'])
    assert status == 0
    assert sorted(os.listdir(tmp_path)) == ['frame_40.png', 'frame_60.png']


def test_flux_range_requires_existing_directory(tmp_path):
    status = main(['flux-range', '-s', '300', '--width', '32', '--height', '16',
                   str(tmp_path / 'missing'), 'frame_'])
    assert status == 1


def test_dither_command(tmp_path):
    in_path = tmp_path / 'in.png'
    out_path = tmp_path / 'out.png'
    Image.fromarray(np.tile(np.arange(0, 256, 8, dtype=np.uint8), (12, 1))).save(in_path)
    assert main(['dither', '-a', 'floyd-steinberg', str(in_path), str(out_path)]) == 0
    with Image.open(out_path) as img:
        assert set(np.unique(np.array(img))) <= {0, 65535}


def test_dither_command_missing_mask(tmp_path):
    in_path = tmp_path / 'in.png'
    Image.fromarray(np.zeros((4, 4), dtype=np.uint8)).save(in_path)
    status = main(['dither', '--mask', str(tmp_path / 'missing.png'), str(in_path), str(tmp_path / 'out.png')])
    assert status == 1
    assert not (tmp_path / 'out.png').exists()


def test_samples_command(tmp_path):
    out_path = tmp_path / 'samples.csv'
    assert main(['samples', '-s', '30', '--workers', '1', '--seed', '4', str(out_path)]) == 0
    df = pd.read_csv(out_path)
    assert list(df.columns) == ['x', 'y', 'r', 'b', 'alpha', 'order', 'flux']
    assert len(df) == 60


def test_blue_noise_command(tmp_path):
    out_path = tmp_path / 'mask.png'
    assert main(['blue-noise', '--size', '8', '--seed', '1', str(out_path)]) == 0
    with Image.open(out_path) as img:
        assert img.size == (8, 8)


def test_isoradials_command(tmp_path):
    out_path = tmp_path / 'isoradials.png'
    assert main(['isoradials', '-i', '60', '--direct-radii', '6', '20', '--ghost-radii', '6', str(out_path)]) == 0
    assert out_path.exists()


def test_invalid_black_hole(tmp_path):
    status = main(['isoradials', '--disk-outer-edge', '3', str(tmp_path / 'x.png')])
    assert status == 1

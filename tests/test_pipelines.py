"""
Tests for the command-line entry points.

This module tests:
  - Describing CSV files.
  - Converting a run of CSV files to NetCDF.
"""

import io

from mcmcstorage.pipelines import describe_chains, stan_csv_to_netcdf
from mcmcstorage.stan_csv.reader import read_chain, write_chain


def test_describe_chains(tmp_path, csv_contents, capsys):
    path = tmp_path / "samples_1.csv"
    path.write_text(csv_contents, encoding="utf-8")

    describe_chains.main([str(path), "--warmup", "3"])

    output = capsys.readouterr().out
    assert f"{path}: Ordered MCMC chain of 10 rows of which 3 are warmup" in output
    assert "c 4:7 Array(2, 2)" in output


def test_stan_csv_to_netcdf(tmp_path, csv_contents, capsys):
    chain = read_chain(io.StringIO(csv_contents))
    for chain_id in (1, 2):
        write_chain(chain, tmp_path / f"run_{chain_id}.csv")

    stan_csv_to_netcdf.main(
        [str(tmp_path / "run_"), "--precision", "single", "--warmup", "1"]
    )

    output = capsys.readouterr().out.strip()
    assert output == str(tmp_path / "run.nc")
    assert (tmp_path / "run.nc").is_file()

import math

import numpy as np
import pandas as pd
import pytest

from roche_limit.descriptives import correlation_matrix, summary_table
from roche_limit.errors import NonNumericValueError, RankDeficientError
from roche_limit.export import (
    coefficient_table,
    export_results,
    failure_table,
    fit_table,
    significance,
    vif_table,
)
from roche_limit.regressions import (
    INTERCEPT,
    Coefficient,
    ModelFailure,
    ModelSpec,
    RegressionResult,
)


@pytest.fixture
def results():
    bivariate = RegressionResult(
        spec=ModelSpec("Model 1: Bivariate", "y", ("distance_1000km",)),
        coefficients=(
            Coefficient(INTERCEPT, -7.5, 0.4, -18.75, 1e-12),
            Coefficient("distance_1000km", 0.21, 0.08, 2.625, 0.016),
        ),
        r_squared=0.26,
        adj_r_squared=0.22,
        n_obs=21,
        vif=(("distance_1000km", 1.0),),
    )
    full = RegressionResult(
        spec=ModelSpec("Model 2: Full Model", "y", ("distance_1000km", "log_gdp_pc")),
        coefficients=(
            Coefficient(INTERCEPT, -9.0, 1.1, -8.18, 2e-7),
            Coefficient("distance_1000km", 0.18, 0.09, 2.0, 0.061),
            Coefficient("log_gdp_pc", 0.05, 0.2, 0.25, 0.81),
        ),
        r_squared=0.31,
        adj_r_squared=0.23,
        n_obs=21,
        vif=(("distance_1000km", 1.4), ("log_gdp_pc", math.inf)),
    )
    return [bivariate, full]


class TestSignificance():
    @pytest.mark.parametrize(
        "p, marker",
        [
            (0.0, "***"),
            (0.0005, "***"),
            (0.001, "**"),
            (0.009, "**"),
            (0.01, "*"),
            (0.049, "*"),
            (0.05, "."),
            (0.099, "."),
            (0.10, ""),
            (0.7, ""),
            (float("nan"), ""),
            (None, ""),
        ],
    )
    def test_markers(self, p, marker):
        assert significance(p) == marker


class TestTables():
    def test_coefficient_table(self, results):
        df = coefficient_table(results)
        assert list(df.columns) == [
            "model", "variable", "estimate", "std_error", "t_value", "p_value", "significance"
        ]
        assert len(df) == 5
        assert df["significance"].tolist() == ["***", "*", "***", ".", ""]
        assert df.loc[1, "estimate"] == 0.21

    def test_fit_table(self, results):
        df = fit_table(results)
        assert df.to_dict("records") == [
            {"model": "Model 1: Bivariate", "r_squared": 0.26, "adj_r_squared": 0.22, "n_obs": 21},
            {"model": "Model 2: Full Model", "r_squared": 0.31, "adj_r_squared": 0.23, "n_obs": 21},
        ]

    def test_vif_table_keeps_unbounded(self, results):
        df = vif_table(results[1])
        assert list(df.columns) == ["variable", "VIF"]
        assert math.isinf(df.loc[1, "VIF"])

    def test_failure_table(self):
        err = RankDeficientError("Model 9", 2, 3)
        df = failure_table([ModelFailure("Model 9", err)])
        assert df.loc[0, "model"] == "Model 9"
        assert "rank 2 < 3" in df.loc[0, "error"]


class TestExportResults():
    def _export(self, out_dir, results, failures=(), vif_model=None):
        desc = pd.DataFrame(
            {"variable": ["x"], "n": [3], "mean": [1.0], "sd": [0.5], "min": [0.5],
             "median": [1.0], "max": [1.5]}
        )
        corr = pd.DataFrame([[1.0, 0.3], [0.3, 1.0]], index=["A", "B"], columns=["A", "B"])
        return export_results(out_dir, desc, corr, results, failures, vif_model)

    def test_writes_all_tables(self, tmp_path, results):
        written = self._export(tmp_path / "tables", results, vif_model="Model 2: Full Model")
        assert set(written) == {
            "descriptive_statistics",
            "correlation_matrix",
            "regression_results",
            "model_fit_statistics",
            "vif_diagnostics",
        }
        reg = pd.read_csv(written["regression_results"], keep_default_na=False)
        assert reg["model"].unique().tolist() == ["Model 1: Bivariate", "Model 2: Full Model"]

        header = written["correlation_matrix"].read_text().splitlines()[0]
        assert header == ",A,B"

        vif = pd.read_csv(written["vif_diagnostics"])
        assert vif["variable"].tolist() == ["distance_1000km", "log_gdp_pc"]

    def test_default_vif_model_has_most_predictors(self, tmp_path, results):
        written = self._export(tmp_path, results)
        assert len(pd.read_csv(written["vif_diagnostics"])) == 2

    def test_failures_written_only_when_present(self, tmp_path, results):
        failure = ModelFailure("Model 3", RankDeficientError("Model 3", 3, 4))
        written = self._export(tmp_path, results, failures=[failure])
        assert (tmp_path / "model_failures.csv").exists()
        assert "model_failures" in written

        self._export(tmp_path, results)
        assert not (tmp_path / "model_failures.csv").exists()

    def test_byte_identical_reruns(self, tmp_path, results):
        a = self._export(tmp_path / "a", results)
        b = self._export(tmp_path / "b", results)
        for name in a:
            assert a[name].read_bytes() == b[name].read_bytes()


class TestDescriptives():
    def test_summary_table(self):
        df = pd.DataFrame({"x": [1.0, 2.0, 3.0, np.nan], "y": [4.0, 4.0, 4.0, 4.0]})
        out = summary_table(df, ["x", "y"])
        assert list(out.columns) == ["variable", "n", "mean", "sd", "min", "median", "max"]
        row = out.iloc[0]
        assert row["n"] == 3
        assert row["mean"] == pytest.approx(2.0)
        assert row["sd"] == pytest.approx(1.0)
        assert row["median"] == 2.0
        assert out.iloc[1]["sd"] == 0.0

    def test_correlation_matrix_uses_complete_rows_and_labels(self):
        df = pd.DataFrame({"a": [1.0, 2.0, 3.0, 4.0], "b": [2.0, 4.0, 6.0, np.nan]})
        out = correlation_matrix(df, ["a", "b"], {"a": "Alpha"})
        assert list(out.index) == ["Alpha", "b"]
        assert list(out.columns) == ["Alpha", "b"]
        assert out.loc["Alpha", "b"] == pytest.approx(1.0)

    def test_unparseable_value_names_column(self):
        df = pd.DataFrame({"country": ["ARG", "BOL"], "x": ["1.5", ".."]})
        with pytest.raises(NonNumericValueError) as excinfo:
            summary_table(df, ["x"])
        assert excinfo.value.table == "summary statistics"
        assert excinfo.value.column == "x"
        with pytest.raises(NonNumericValueError):
            correlation_matrix(df.assign(y=[1.0, 2.0]), ["x", "y"])

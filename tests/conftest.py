from datetime import date

import pytest

from linea_dashboard.config import PipelineConfig
from linea_dashboard.loaders.csv_matrix import parse_csv_to_matrix


SAMPLE_CSV = (
    "Métrica,01/02,02/02,03/02\n"
    "Linea TM,10,12,\n"
    "Línea  TT,8,9,7\n"
    "Presentismo,97%,98%,\n"
    ",ignored,ignored,ignored\n"
    'Legajo inasistencias,"111, 222",333,\n'
    'Observaciones,"Corte de luz, 20 min",,"dijo ""ok"""\n'
)


@pytest.fixture
def sample_csv():
    return SAMPLE_CSV


@pytest.fixture
def sample_matrix():
    return parse_csv_to_matrix(SAMPLE_CSV)


@pytest.fixture
def config():
    return PipelineConfig(header_row=1, metric_col=1, window_days=6)


@pytest.fixture
def today():
    return date(2024, 2, 2)

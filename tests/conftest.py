import random
from datetime import datetime, timedelta
from typing import List

import pytest

from factories import FakeClock, make_report
from health_portal.models.report_model import HealthReport


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def reports() -> List[HealthReport]:
    base = datetime(2024, 3, 1, 9, 0)
    return [
        make_report("r1", base, aiSummary="Emocromo nella norma",
                    extractedValues={"Emoglobina": {"value": 14.2, "unit": "g/dL"}}),
        make_report("r2", base + timedelta(days=1), reportType="radiology", fileName="torace.jpg",
                    radiologicalAnalysis={
                        "imageType": "xray",
                        "findings": [
                            {"category": "attention", "description": "Opacità",
                             "location": "lobo superiore destro"},
                        ],
                    }),
        make_report("r3", base + timedelta(days=2),
                    extractedValues={"Glucosio": {"value": 128, "unit": "mg/dL"}}),
        make_report("r4", base + timedelta(days=3), reportType="cardiology",
                    aiSummary="ECG regolare"),
    ]

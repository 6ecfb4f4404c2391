import os
import shutil
import tempfile
from datetime import datetime, timedelta

import pytest


@pytest.fixture(scope="function")
def tabinfer_home(request):
    temp_dir = tempfile.mkdtemp(prefix="tabinfer_test_")
    os.environ["TABINFER_HOME"] = temp_dir

    def cleanup():
        os.environ.pop("TABINFER_HOME", None)
        shutil.rmtree(temp_dir)

    request.addfinalizer(cleanup)
    return temp_dir


@pytest.fixture(scope="function")
def cli_runner():
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def event_rows():
    """Twenty event rows with a title, a description, a venue, dates and coordinates."""
    start = datetime(2024, 3, 1, 19, 30)
    rows = []
    for i in range(20):
        rows.append(
            {
                "id": i + 1,
                "title": f"Community concert number {i + 1}",
                "description": (
                    f"An evening of live music in the park for edition {i + 1} "
                    "with local bands and food stalls."
                ),
                "venue": f"Stadtpark Stage {i % 3 + 1}",
                "date": (start + timedelta(days=i)).strftime("%Y-%m-%dT%H:%M:%S"),
                "lat": 52.52 + i * 0.001,
                "lon": 13.405 + i * 0.001,
            }
        )
    return rows


@pytest.fixture
def events_csv(tmp_path, event_rows):
    """The event rows written as a CSV file."""
    headers = list(event_rows[0])
    lines = [",".join(headers)]
    for row in event_rows:
        lines.append(",".join(str(row[h]) for h in headers))
    path = tmp_path / "events.csv"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path

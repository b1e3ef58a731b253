import datetime as dt

import pytest
from pydantic import ValidationError

from sellerdash.series import Granularity, SeriesRequest, generate_series, summarize
from sellerdash.series.builder import (
    LAST_YEAR_SALES_SCALE,
    LAST_YEAR_UNITS_SCALE,
    build_trailing_request,
    request_seed,
    trailing_window,
)


def make_request(**overrides):
    base = dict(
        store_id="store-1",
        total_units=1000,
        total_sales=50_000,
        granularity=Granularity.DAY,
        range_start=dt.date(2025, 1, 1),
        range_end=dt.date(2025, 1, 31),
    )
    base.update(overrides)
    return SeriesRequest(**base)


def test_generation_is_deterministic():
    req = make_request()
    assert generate_series(req) == generate_series(make_request())


def test_request_accepts_wire_aliases():
    req = SeriesRequest.model_validate({
        "storeId": "s9", "totalUnits": 10, "totalSales": 20, "granularity": "WEEK",
        "rangeStart": "2025-01-01", "rangeEnd": "2025-01-02",
    })
    assert req.store_id == "s9"
    assert req.granularity == Granularity.WEEK


@pytest.mark.parametrize("granularity", list(Granularity))
def test_totals_are_conserved_for_every_granularity(granularity):
    req = make_request(granularity=granularity, total_units=192260, total_sales=18657478.4)
    buckets = generate_series(req)
    assert sum(b.units for b in buckets) == 192260
    assert sum(b.sales for b in buckets) == 18657478
    assert all(b.units >= 0 and b.sales >= 0 for b in buckets)
    assert [b.index for b in buckets] == list(range(len(buckets)))


def test_hourly_series_has_24_labelled_buckets():
    buckets = generate_series(make_request(granularity=Granularity.HOUR, range_end=dt.date(2025, 1, 1)))
    assert len(buckets) == 24
    assert [b.hour for b in buckets] == list(range(24))
    assert buckets[0].label == "12AM"
    assert buckets[1].label == "1AM"
    assert buckets[12].label == "12PM"
    assert buckets[23].label == "11PM"


def test_hourly_zero_total_gives_all_zero_buckets():
    buckets = generate_series(make_request(granularity=Granularity.HOUR, total_units=0, total_sales=0))
    assert len(buckets) == 24
    assert all(b.units == 0 and b.sales == 0 for b in buckets)
    assert all(b.last_year_units == 0 and b.last_year_sales == 0 for b in buckets)


def test_hourly_small_total_sums_exactly_for_many_seeds():
    for seed in range(120):
        buckets = generate_series(make_request(granularity=Granularity.HOUR, total_units=240, total_sales=0, seed=seed))
        assert sum(b.units for b in buckets) == 240
        assert all(b.units >= 0 for b in buckets)


def test_negative_and_invalid_totals_read_as_zero():
    req = make_request(total_units=-5, total_sales=float("nan"))
    assert req.total_units == 0
    assert req.total_sales == 0
    assert summarize(generate_series(req))["units"] == 0


def test_inverted_range_is_rejected():
    with pytest.raises(ValidationError):
        make_request(range_start=dt.date(2025, 2, 1), range_end=dt.date(2025, 1, 1))


def test_single_day_range_puts_total_in_one_bucket():
    req = make_request(range_start=dt.date(2025, 5, 5), range_end=dt.date(2025, 5, 5))
    buckets = generate_series(req)
    assert len(buckets) == 1
    assert buckets[0].units == 1000
    assert buckets[0].label == "May '25"


def test_explicit_seed_changes_shape_not_totals():
    a = generate_series(make_request(seed=1))
    b = generate_series(make_request(seed=2))
    assert [x.units for x in a] != [x.units for x in b]
    assert summarize(a)["units"] == summarize(b)["units"] == 1000


def test_seed_depends_on_request_fields():
    assert request_seed(make_request()) == request_seed(make_request())
    assert request_seed(make_request()) != request_seed(make_request(store_id="store-2"))
    assert request_seed(make_request()) != request_seed(make_request(total_units=1001))
    assert request_seed(make_request(seed=(1 << 32) + 5)) == 5


def test_last_year_totals_fall_in_scale_band():
    total_units, total_sales = 50_000, 2_000_000
    for seed in range(60):
        s = summarize(generate_series(make_request(total_units=total_units, total_sales=total_sales, seed=seed)))
        lo, hi = LAST_YEAR_UNITS_SCALE
        assert total_units * lo - 1 <= s["lastYearUnits"] <= total_units * hi + 1
        lo, hi = LAST_YEAR_SALES_SCALE
        assert total_sales * lo - 1 <= s["lastYearSales"] <= total_sales * hi + 1


def test_last_year_shape_is_independent_of_current():
    buckets = generate_series(make_request(total_units=100_000))
    current = [b.units for b in buckets]
    last_year = [b.last_year_units for b in buckets]
    ratios = {round(ly / cur, 3) for cur, ly in zip(current, last_year) if cur}
    # A scaled copy would give one ratio for every bucket
    assert len(ratios) > 5


def test_units_and_sales_shapes_differ():
    buckets = generate_series(make_request(total_units=100_000, total_sales=100_000))
    assert [b.units for b in buckets] != [b.sales for b in buckets]


def test_single_week_is_padded_monday_to_sunday():
    req = make_request(granularity=Granularity.WEEK, range_start=dt.date(2025, 1, 8), range_end=dt.date(2025, 1, 10))
    buckets = generate_series(req)
    assert [b.label for b in buckets] == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    assert buckets[0].date == "2025-01-06"
    for i in (0, 1, 5, 6):
        assert buckets[i].units == 0 and buckets[i].last_year_units == 0
    assert sum(b.units for b in buckets[2:5]) == 1000


def test_multi_week_range_gives_one_bucket_per_week():
    req = make_request(granularity=Granularity.WEEK)
    buckets = generate_series(req)
    assert [b.label for b in buckets] == ["Dec 30", "Jan 6", "Jan 13", "Jan 20", "Jan 27"]
    assert sum(b.units for b in buckets) == 1000


def test_single_month_is_padded_with_day_anchors():
    req = make_request(granularity=Granularity.MONTH, range_start=dt.date(2025, 2, 10), range_end=dt.date(2025, 2, 20))
    buckets = generate_series(req)
    assert len(buckets) == 28
    labelled = {b.index: b.label for b in buckets if b.label}
    assert labelled == {0: "1", 7: "8", 14: "15", 21: "22"}
    assert all(b.units == 0 for b in buckets[:9] + buckets[20:])
    assert sum(b.units for b in buckets[9:20]) == 1000


def test_trailing_window_starts_on_first_of_month():
    assert trailing_window(dt.date(2025, 3, 15)) == (dt.date(2024, 3, 1), dt.date(2025, 3, 15))
    assert trailing_window(dt.date(2025, 1, 31)) == (dt.date(2024, 1, 1), dt.date(2025, 1, 31))
    assert trailing_window(dt.date(2025, 1, 31), months=1) == (dt.date(2025, 1, 1), dt.date(2025, 1, 31))


def test_trailing_request_has_thirteen_month_labels():
    req = build_trailing_request("store-1", 192260, 18657478, dt.date(2025, 3, 15))
    assert req.granularity == Granularity.MONTH
    buckets = generate_series(req)
    assert len(buckets) == (dt.date(2025, 3, 15) - dt.date(2024, 3, 1)).days + 1
    labels = [b.label for b in buckets if b.label]
    assert len(labels) == 13
    assert labels[0] == "Mar '24"
    assert labels[-1] == "Mar '25"
    assert summarize(buckets)["units"] == 192260


@pytest.mark.parametrize("granularity", [Granularity.HOUR, Granularity.DAY])
def test_huge_totals_are_conserved(granularity):
    req = make_request(granularity=granularity, total_units=1e19, total_sales=3e17)
    buckets = generate_series(req)
    assert sum(b.units for b in buckets) == 10**19
    assert sum(b.sales for b in buckets) == 3 * 10**17

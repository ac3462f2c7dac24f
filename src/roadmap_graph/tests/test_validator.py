from roadmap_graph.validation.work_item_validator import ISSUE_COLUMNS, validate_work_items


def issue_types(report):
    return sorted(report["IssueType"].tolist())


def test_clean_items_have_no_issues():
    report = validate_work_items([
        {"id": "A", "name": "A", "effort": 5, "start_date": "2024-01-01", "end_date": "2024-01-31"},
        {"id": "B", "name": "B", "effort": 0, "start_date": "2024-02-01", "end_date": "2024-02-28"},
    ])
    assert list(report.columns) == ISSUE_COLUMNS
    assert report.empty


def test_empty_input():
    assert validate_work_items([]).empty
    assert validate_work_items(None).empty


def test_missing_id_column():
    report = validate_work_items([{"name": "Nameless"}])
    assert issue_types(report) == ["MissingColumns"]
    assert report.iloc[0]["Severity"] == "error"


def test_blank_and_duplicate_ids():
    report = validate_work_items([
        {"id": "A", "name": "first", "start_date": "2024-01-01", "end_date": "2024-01-31"},
        {"id": "A", "name": "second", "start_date": "2024-02-01", "end_date": "2024-02-28"},
        {"id": " ", "name": "blank", "start_date": "2024-03-01", "end_date": "2024-03-31"},
    ])
    assert issue_types(report) == ["BlankID", "DuplicateID"]
    assert set(report["Severity"]) == {"error"}


def test_date_problems():
    report = validate_work_items([
        {"id": "A", "name": "A", "start_date": "2024-05-01", "end_date": "2024-04-01"},
        {"id": "B", "name": "B", "start_date": "someday", "end_date": "2024-06-01"},
        {"id": "C", "name": "C"},
    ])
    by_item = report.groupby("ItemID")["IssueType"].apply(sorted).to_dict()

    assert by_item["A"] == ["InvalidDateOrder"]
    assert by_item["B"] == ["InvalidDate", "MissingDates"]
    assert by_item["C"] == ["MissingDates"]


def test_negative_effort():
    report = validate_work_items([
        {"id": "A", "name": "A", "effort": -3, "start_date": "2024-01-01", "end_date": "2024-01-31"},
    ])
    assert issue_types(report) == ["NegativeEffort"]


def test_gap_outside_window_is_info():
    report = validate_work_items([
        {"id": "A", "name": "A", "startDate": "2024-01-01", "endDate": "2024-01-31"},
        {"id": "B", "name": "B", "startDate": "2024-06-01", "endDate": "2024-06-30"},
    ])
    assert issue_types(report) == ["GapOutsideWindow"]
    row = report.iloc[0]
    assert row["ItemID"] == "B"
    assert row["Severity"] == "info"


def test_repeated_alias_columns_do_not_break_the_report():
    report = validate_work_items([
        {"ID": "A", "TaskID": "x", "name": "A", "start": "2024-01-01", "Start": "2024-01-02",
         "end_date": "2024-01-31"},
    ])
    assert report.empty

import pandas as pd


def sample_work_items(year=None) -> pd.DataFrame:
    """
    Demo initiatives for one scenario, dated within `year`
    (defaults to the current year).
    """
    if year is None:
        year = pd.Timestamp.today().year

    rows = [
        ("init-crm-migration", "CRM Migration to Salesforce", "InProgress", "Migration", 120, "01-15", "06-30"),
        ("init-crm-decom", "Legacy CRM Decommission", "Planned", "Decommission", 30, "07-01", "08-31"),
        ("init-ecom-upgrade", "E-Commerce Platform Upgrade", "Proposed", "Upgrade", 60, "03-01", "05-15"),
        ("init-dwh", "Data Warehouse Implementation", "InProgress", "New", 200, "02-01", "09-30"),
        ("init-bi-decom", "Legacy Reporting Decommission", "Planned", "Decommission", 20, "10-01", "11-30"),
        ("init-api-gateway", "API Gateway Implementation", "Proposed", "New", 80, "04-01", "07-31"),
        ("init-cloud-1", "Cloud Migration Phase 1", "Planned", "Migration", 150, "05-01", "12-31"),
        ("init-identity", "Identity Platform Replacement", "Proposed", "Replacement", 40, None, None),
    ]

    df = pd.DataFrame(
        rows,
        columns=["id", "name", "status", "type", "effort", "start_date", "end_date"],
    )
    for col in ["start_date", "end_date"]:
        df[col] = df[col].map(lambda md: f"{year}-{md}" if md else None)

    return df


def sample_systems() -> pd.DataFrame:
    return pd.DataFrame(
        [
            ("sys-legacy-crm", "Legacy CRM"),
            ("sys-salesforce", "Salesforce"),
            ("sys-ecommerce", "E-Commerce Platform"),
            ("sys-snowflake", "Snowflake"),
            ("sys-legacy-bi", "Legacy BI"),
        ],
        columns=["id", "name"],
    )

"""Delivery service area: ZIP codes within roughly 20 miles of the bakery."""
import re
from typing import Optional

ZIP_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")

SERVICE_AREA_ZIPS = frozenset({
    # Philadelphia - Northeast
    '19111', '19114', '19115', '19116', '19120', '19124', '19135', '19136', '19137', '19149', '19152', '19154',
    # Philadelphia - North
    '19119', '19126', '19138', '19140', '19141', '19144', '19150',
    # Philadelphia - Center City
    '19102', '19103', '19104', '19106', '19107', '19121', '19122', '19123', '19125', '19130', '19132', '19133',
    # Philadelphia - South
    '19145', '19146', '19147', '19148',
    # Philadelphia - West
    '19131', '19139', '19142', '19143', '19151', '19153',
    # Bucks County
    '19020', '19021', '19030', '19047', '19053', '19054', '19055', '19056', '19057',
    # Montgomery County
    '19001', '19002', '19006', '19009', '19012', '19025', '19027', '19038', '19040', '19044', '19046',
    '19072', '19075', '19090', '19095',
    # Delaware County
    '19013', '19014', '19015', '19018', '19022', '19023', '19026', '19029', '19032', '19033', '19036',
    '19050', '19063', '19064', '19074', '19078', '19079', '19081', '19082', '19083',
    # Camden County, NJ
    '08002', '08003', '08004', '08007', '08009', '08010', '08012', '08021', '08026', '08030', '08031',
    '08033', '08034', '08035', '08043', '08049', '08059', '08078', '08081', '08083', '08084', '08089',
    '08099', '08101', '08102', '08103', '08104', '08105', '08106', '08107', '08108', '08109', '08110',
})


def normalize_zip(zip_code: str) -> str:
    return zip_code.strip()[:5]


def is_zip_in_service_area(zip_code: str) -> bool:
    return normalize_zip(zip_code) in SERVICE_AREA_ZIPS


def zip_validation_error(zip_code: Optional[str]) -> Optional[str]:
    """Returns a customer-facing message, or None when the ZIP is deliverable."""
    if not zip_code or len(zip_code.strip()) < 5:
        return "Please enter a valid 5-digit ZIP code"
    if not ZIP_PATTERN.match(zip_code.strip()):
        return "Please enter a valid ZIP code format"
    if not is_zip_in_service_area(zip_code):
        return "Sorry, we currently only deliver within 20 miles of Northeast Philadelphia"
    return None

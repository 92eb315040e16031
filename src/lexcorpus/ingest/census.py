"""Document list for ingestion.

The census (``data/census.json``) enumerates every known law with a
``classification``; only ``ingestable`` entries are fetched. Without a census
the pipeline falls back to ``KEY_ACTS``, a short list of the core statutes.
"""
from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from lexcorpus import config
from lexcorpus.ingest.schemas import CensusClassification, CensusEntry, DocumentDescriptor, DocumentStatus

logger = logging.getLogger(__name__)

KEY_ACTS: List[DocumentDescriptor] = [
    DocumentDescriptor(
        id='cybersecurity-law-2018',
        title='Luật An ninh mạng 2018',
        title_en='Cybersecurity Law 2018',
        short_name='Luật ANMT 2018',
        status=DocumentStatus.IN_FORCE,
        issued_date='2018-06-12',
        in_force_date='2019-01-01',
        url='https://thuvienphapluat.vn/van-ban/Cong-nghe-thong-tin/Luat-An-ninh-mang-2018-351416.aspx',
        official_number='24/2018/QH14',
        description='Comprehensive cybersecurity law.',
    ),
    DocumentDescriptor(
        id='personal-data-protection-decree-2023',
        title='Nghị định 13/2023/NĐ-CP về bảo vệ dữ liệu cá nhân',
        title_en='Personal Data Protection Decree 2023',
        short_name='Decree 13/2023',
        status=DocumentStatus.IN_FORCE,
        issued_date='2023-04-17',
        in_force_date='2023-07-01',
        url='https://thuvienphapluat.vn/van-ban/Cong-nghe-thong-tin/Nghi-dinh-13-2023-ND-CP-bao-ve-du-lieu-ca-nhan-559733.aspx',
        official_number='13/2023/NĐ-CP',
        description="Vietnam's primary personal data protection regulation.",
    ),
    DocumentDescriptor(
        id='constitution-2013',
        title='Hiến pháp 2013',
        title_en='Constitution of the Socialist Republic of Vietnam 2013',
        short_name='Hiến pháp 2013',
        status=DocumentStatus.IN_FORCE,
        issued_date='2013-11-28',
        in_force_date='2014-01-01',
        url='https://thuvienphapluat.vn/van-ban/Bo-may-hanh-chinh/Hien-phap-nam-2013-215627.aspx',
        official_number='N/A',
        description='Supreme law of Vietnam.',
    ),
    DocumentDescriptor(
        id='penal-code-2015',
        title='Bộ luật Hình sự 2015',
        title_en='Penal Code 2015',
        short_name='BLHS 2015',
        status=DocumentStatus.AMENDED,
        issued_date='2015-11-27',
        in_force_date='2018-01-01',
        url='https://thuvienphapluat.vn/van-ban/Trach-nhiem-hinh-su/Bo-luat-hinh-su-2015-296661.aspx',
        official_number='100/2015/QH13',
        description='Penal code with cybercrime provisions.',
    ),
    DocumentDescriptor(
        id='enterprise-law-2020',
        title='Luật Doanh nghiệp 2020',
        title_en='Enterprise Law 2020',
        short_name='Luật DN 2020',
        status=DocumentStatus.IN_FORCE,
        issued_date='2020-06-17',
        in_force_date='2021-01-01',
        url='https://thuvienphapluat.vn/van-ban/Doanh-nghiep/Luat-Doanh-nghiep-2020-so-59-2020-QH14-437468.aspx',
        official_number='59/2020/QH14',
        description='Enterprise/company law.',
    ),
]


def read_census(census_path: str = config.CENSUS_PATH) -> Optional[Dict[str, Any]]:
    if not os.path.exists(census_path):
        return None
    with open(census_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def ingestable_entries(census: Dict[str, Any]) -> List[CensusEntry]:
    entries: List[CensusEntry] = []
    for raw in census.get('laws', []):
        try:
            entry = CensusEntry(**raw)
        except ValidationError as e:
            logger.warning(f"[census] Skipping malformed entry {raw.get('id', '?')}: {e.error_count()} errors")
            continue
        if entry.classification == CensusClassification.INGESTABLE:
            entries.append(entry)
    return entries


def load_act_list(census_path: str = config.CENSUS_PATH) -> List[DocumentDescriptor]:
    """Ingestable census entries, or ``KEY_ACTS`` when no census exists."""
    census = read_census(census_path)
    if census is None:
        logger.warning(f"[census] No census at {census_path}; falling back to {len(KEY_ACTS)} key acts")
        return list(KEY_ACTS)
    stats = census.get('stats', {})
    logger.info(f"[census] {stats.get('total', len(census.get('laws', [])))} laws (generated {census.get('generated_at', '?')})")
    entries = ingestable_entries(census)
    logger.info(f"[census] Ingestable: {len(entries)} laws")
    return list(entries)


def record_ingestion(stats: Dict[str, Any], census_path: str = config.CENSUS_PATH) -> bool:
    """Write ingestion stats into the census file. Returns False if there is no census."""
    census = read_census(census_path)
    if census is None:
        return False
    census['ingestion'] = {'completed_at': datetime.now(timezone.utc).isoformat(), **stats}
    tmp = f"{census_path}.tmp"
    with open(tmp, 'w', encoding='utf-8') as f:
        json.dump(census, f, ensure_ascii=False, indent=2)
        f.write('\n')
    os.replace(tmp, census_path)
    return True


__all__ = ['KEY_ACTS', 'load_act_list', 'read_census', 'ingestable_entries', 'record_ingestion']

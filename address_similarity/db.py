from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .cache import build_cache_key
from .models import AddressEntity, RegionEntity, RegionType

TABLE_SCHEMAS: Dict[str, List[str]] = {
    "regions": ["id", "parent_id", "name", "region_type", "aliases_json"],
    "addresses": [
        "id", "province_id", "city_id", "county_id", "towns_json",
        "village", "road", "road_num", "text",
    ],
}


def _empty_table(name: str) -> pd.DataFrame:
    return pd.DataFrame(columns=TABLE_SCHEMAS[name])


def _ensure_columns(df: pd.DataFrame, columns: List[str]) -> pd.DataFrame:
    result = df.copy()
    for col in columns:
        if col not in result.columns:
            result[col] = None
    return result[columns]


def _clean_value(val: Any) -> Any:
    if val is None:
        return None
    try:
        if pd.isna(val):
            return None
    except (TypeError, ValueError):
        pass
    return val


def _row_to_dict(row: pd.Series) -> Dict[str, Any]:
    return {k: _clean_value(v) for k, v in row.to_dict().items()}


def _to_int(val: Any) -> Optional[int]:
    val = _clean_value(val)
    if val is None or val == "":
        return None
    return int(float(val))


def _to_str(val: Any) -> str:
    val = _clean_value(val)
    return "" if val is None else str(val)


class ExcelConnection:
    """简单的 Excel “连接”对象，维护内存表缓存并提供保存方法。"""
    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.tables: Dict[str, pd.DataFrame] = {
            name: _empty_table(name) for name in TABLE_SCHEMAS
        }
        if self.path.exists():
            xls = pd.read_excel(self.path, sheet_name=None)
            for name, cols in TABLE_SCHEMAS.items():
                if name in xls:
                    self.tables[name] = _ensure_columns(xls[name], cols)

    def save(self) -> None:
        with pd.ExcelWriter(self.path, engine="openpyxl") as writer:
            for name, df in self.tables.items():
                df.to_excel(writer, sheet_name=name, index=False)


def connect(db_path: str | Path) -> ExcelConnection:
    return ExcelConnection(db_path)


def init_db(conn: ExcelConnection) -> None:
    conn.save()


def clear_table(conn: ExcelConnection, table: str) -> None:
    if table not in TABLE_SCHEMAS:
        raise ValueError(f"Unknown table: {table}")
    conn.tables[table] = _empty_table(table)
    conn.save()


def _upsert_row(df: pd.DataFrame, row: Dict[str, Any], key_field: str) -> pd.DataFrame:
    mask = df[key_field] == row[key_field]
    if mask.any():
        idx = df.index[mask][0]
        for col in df.columns:
            df.at[idx, col] = row.get(col)
        return df
    if df.empty:
        return pd.DataFrame([row], columns=df.columns)
    return pd.concat([df, pd.DataFrame([row], columns=df.columns)], ignore_index=True)


def _region_row(r: RegionEntity) -> Dict[str, Any]:
    return {
        "id": r.id,
        "parent_id": r.parent_id,
        "name": r.name,
        "region_type": r.region_type.value,
        "aliases_json": json.dumps(r.aliases, ensure_ascii=False),
    }


def _address_row(a: AddressEntity) -> Dict[str, Any]:
    return {
        "id": a.id,
        "province_id": a.province.id if a.province else None,
        "city_id": a.city.id if a.city else None,
        "county_id": a.county.id if a.county else None,
        "towns_json": json.dumps(a.towns, ensure_ascii=False),
        "village": a.village,
        "road": a.road,
        "road_num": a.road_num,
        "text": a.text,
    }


def upsert_region(conn: ExcelConnection, r: RegionEntity) -> None:
    conn.tables["regions"] = _upsert_row(conn.tables["regions"], _region_row(r), "id")
    conn.save()


def upsert_address(conn: ExcelConnection, a: AddressEntity) -> None:
    conn.tables["addresses"] = _upsert_row(conn.tables["addresses"], _address_row(a), "id")
    conn.save()


def insert_addresses(conn: ExcelConnection, addresses: Sequence[AddressEntity]) -> None:
    """批量追加，只保存一次"""
    if not addresses:
        return
    df = conn.tables["addresses"]
    new_rows = pd.DataFrame([_address_row(a) for a in addresses], columns=df.columns)
    conn.tables["addresses"] = new_rows if df.empty else pd.concat([df, new_rows], ignore_index=True)
    conn.save()


def list_regions(conn: ExcelConnection) -> Dict[int, RegionEntity]:
    out: Dict[int, RegionEntity] = {}
    for _, row in conn.tables["regions"].iterrows():
        d = _row_to_dict(row)
        rid = _to_int(d["id"])
        if rid is None:
            continue
        aliases = json.loads(d["aliases_json"]) if d.get("aliases_json") else []
        out[rid] = RegionEntity(
            id=rid,
            name=_to_str(d["name"]),
            region_type=RegionType(d["region_type"]),
            parent_id=_to_int(d.get("parent_id")),
            aliases=[str(a) for a in aliases],
        )
    return out


def load_addresses(conn: ExcelConnection) -> List[AddressEntity]:
    """读取结构化地址，并把省/市/区县 id 还原为 RegionEntity"""
    regions = list_regions(conn)
    out: List[AddressEntity] = []
    for _, row in conn.tables["addresses"].iterrows():
        d = _row_to_dict(row)
        aid = _to_int(d["id"])
        if aid is None:
            continue
        towns = json.loads(d["towns_json"]) if d.get("towns_json") else []
        out.append(AddressEntity(
            id=aid,
            province=regions.get(_to_int(d.get("province_id"))),
            city=regions.get(_to_int(d.get("city_id"))),
            county=regions.get(_to_int(d.get("county_id"))),
            towns=[str(t) for t in towns],
            village=_to_str(d.get("village")),
            road=_to_str(d.get("road")),
            road_num=_to_str(d.get("road_num")),
            text=_to_str(d.get("text")),
        ))
    return out


def group_by_region(addresses: Sequence[AddressEntity]) -> Dict[str, List[AddressEntity]]:
    """按地址库 key 分组，省或市缺失的地址无法归属，直接丢弃"""
    groups: Dict[str, List[AddressEntity]] = {}
    for addr in addresses:
        key = build_cache_key(addr)
        if key is None:
            continue
        groups.setdefault(key, []).append(addr)
    return groups

import logging
from typing import Dict, Tuple

from .config import Config, ManagedSet, SetDefaults
from .errors import IPSetCtlError, IPSetError
from .ipset import IPSet, Params
from .sources import fetch_entries

logger = logging.getLogger("ipsetctl.sync")

MAX_SET_NAME = 31
TMP_SUFFIX = "_tmp"


def tmp_name(name: str) -> str:
    return name[:MAX_SET_NAME - len(TMP_SUFFIX)] + TMP_SUFFIX


def params_for(managed: ManagedSet, defaults: SetDefaults) -> Params:
    return Params(
        family=managed.family or defaults.family,
        hashsize=managed.hashsize or defaults.hashsize,
        maxelem=managed.maxelem or defaults.maxelem,
        timeout=managed.timeout if managed.timeout is not None else defaults.timeout,
    )


def sync_set(ipset: IPSet, managed: ManagedSet, defaults: SetDefaults) -> int:
    """Load the source of a managed set into the live set.

    The entries go into a scratch set first which is then swapped in, so
    rules matching on the set never see it half-filled.
    """
    entries = list(dict.fromkeys(fetch_entries(managed.source)))
    params = params_for(managed, defaults)
    scratch = tmp_name(managed.name)

    existing = ipset.list_sets()
    if scratch in existing:
        ipset.destroy(scratch)
    ipset.create(scratch, managed.type, params, *managed.options)
    try:
        if entries:
            ipset.restore("".join(f"add {scratch} {e}\n" for e in entries))
        if managed.name not in existing:
            ipset.create(managed.name, managed.type, params, *managed.options)
        ipset.swap(scratch, managed.name)
    except IPSetError:
        try:
            ipset.destroy(scratch)
        except IPSetError as e:
            logger.warning(f"unable to remove {scratch}: {e}")
        raise
    ipset.destroy(scratch)
    logger.info(f"{managed.name}: {len(entries)} entries")
    return len(entries)


def sync_all(ipset: IPSet, config: Config) -> Tuple[Dict[str, int], Dict[str, IPSetCtlError]]:
    """Sync every configured set. A failing set does not stop the others.

    Returns the entry counts of the synced sets and the errors of the failed ones.
    """
    synced, failed = {}, {}
    for s in config.sets:
        try:
            synced[s.name] = sync_set(ipset, s, config.defaults)
        except IPSetCtlError as e:
            logger.warning(f"{s.name}: sync failed: {e}")
            failed[s.name] = e
    return synced, failed

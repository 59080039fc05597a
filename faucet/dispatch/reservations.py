from contextlib import contextmanager

from loguru import logger

from faucet.bitcoind.models import UnspentOutput


class UtxoReservations:
    """Outputs picked by a dispatch that hasn't finished yet.

    ``listunspent`` and ``createrawtransaction`` are separate round trips,
    so two concurrent sends could pick the same outputs. Selected outputs
    are held here until their dispatch ends and left out of every other
    selection in the meantime. Everything runs on one event loop and none
    of the methods await, so no lock is needed.
    """

    def __init__(self) -> None:
        self._reserved: set[str] = set()

    def __contains__(self, outpoint: str) -> bool:
        return outpoint in self._reserved

    def __len__(self) -> int:
        return len(self._reserved)

    def available(self, unspents: list[UnspentOutput]) -> list[UnspentOutput]:
        free = [u for u in unspents if u.outpoint not in self._reserved]
        if len(free) != len(unspents):
            logger.debug(f"Skipping {len(unspents) - len(free)} reserved output(s)")

        return free

    @contextmanager
    def hold(self, inputs: list[UnspentOutput]):
        outpoints = {i.outpoint for i in inputs}
        self._reserved.update(outpoints)
        try:
            yield
        finally:
            self._reserved.difference_update(outpoints)


utxo_reservations = UtxoReservations()

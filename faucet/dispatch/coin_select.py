from loguru import logger

from faucet.bitcoind.models import TransactionRequest, UnspentOutput
from faucet.errors import OutOfMoneyError

# Absolute fee in sats paid by every faucet transaction
FIXED_FEE = 1_000


def select_coins(
    unspents: list[UnspentOutput], amount: int, fee: int = FIXED_FEE
) -> tuple[list[UnspentOutput], int]:
    """Greedily pick outputs from the end of ``unspents``.

    Outputs are popped off the back of the list (the list is consumed in
    place) until they cover ``amount + fee``. Returns the picked outputs in
    the order they were taken and their total.

    Raises
    ------
    OutOfMoneyError
        If the whole list doesn't cover ``amount + fee``.
    """
    target = amount + fee
    available = 0
    inputs = []

    while available < target:
        if not unspents:
            logger.warning(
                f"Out of money: need {target} sat, wallet only has {available} sat"
            )
            raise OutOfMoneyError(target, available)

        unspent = unspents.pop()
        inputs.append(unspent)
        available += unspent.amount_sats

    return inputs, available


def build_outputs(
    destination: str, amount: int, change_address: str, change: int
) -> dict[str, int]:
    # Both addresses are keys of the same map, merge instead of overwriting
    if destination == change_address:
        return {destination: amount + change}

    return {destination: amount, change_address: change}


def build_transaction(
    unspents: list[UnspentOutput],
    destination: str,
    amount: int,
    change_address: str,
    fee: int = FIXED_FEE,
) -> TransactionRequest:
    inputs, available = select_coins(unspents, amount, fee)
    change = available - (amount + fee)

    logger.debug(
        f"Selected {len(inputs)} input(s) worth {available} sat, "
        f"sending {amount} sat with {change} sat change"
    )

    return TransactionRequest(
        inputs=inputs,
        outputs=build_outputs(destination, amount, change_address, change),
        fee=fee,
    )

from typing import Any, Callable, List, Sequence

from pathos import multiprocessing
import tqdm


def run_parallel(runner: Callable,
                 arg_list: Sequence,
                 num_cores: int,
                 progress_bar: bool = False,
                 description: str = None) -> List[Any]:
    """Maps ``runner`` over ``arg_list``, keeping the order of the arguments.

    With ``num_cores == 1`` everything runs in the calling process so
    breakpoints and tracebacks behave normally.
    """
    if num_cores < 1:
        raise ValueError(f'num_cores must be at least 1. Got {num_cores}.')
    progress = {'total': len(arg_list), 'disable': not progress_bar, 'desc': description}
    if num_cores == 1:
        return [runner(arg) for arg in tqdm.tqdm(arg_list, **progress)]

    with multiprocessing.ProcessPool(max(1, min(num_cores, len(arg_list)))) as pool:
        return list(tqdm.tqdm(pool.imap(runner, arg_list), **progress))

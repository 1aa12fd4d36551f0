def mc_assert(expr: bool, log_str: str):
    assert expr, ">>>> [MC]: " + log_str


def mc_log(log_str: str):
    print(">> [MC]: {}".format(log_str))


if __name__ == "__main__":
    pass

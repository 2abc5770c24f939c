from fncli import cli


@cli
def main(a: int, b: int):
    print(a + b)


if __name__ == "__main__":
    main()

# $ python examples/add.py 1 2
# 3

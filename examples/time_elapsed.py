from fncli import cli


class Time:

    def __init__(self, hour, minute):
        self.hour   = hour
        self.minute = minute

    @classmethod
    def from_str(cls, s):
        hour, sep, minute = s.partition(":")
        if not sep:
            raise ValueError("should have a colon")

        if not hour.isdigit():
            raise ValueError("hour should be a number")
        if not minute.isdigit():
            raise ValueError("minute should be a number")

        hour, minute = int(hour), int(minute)

        if hour > 23:
            raise ValueError("hour should be less than 24")
        if minute > 59:
            raise ValueError("minute should be less than 60")

        return cls(hour, minute)

    def __str__(self):
        return "%d:%d" % (self.hour, self.minute)


@cli
def main(start: Time, end: Time):
    elapsed = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)

    if elapsed < 0:
        print("time traveler detected: ", end = "")

    # Truncates towards zero for negative spans
    hours   = int(elapsed / 60)
    minutes = elapsed - hours * 60

    print(f"{hours} hours and {minutes} minutes have elapsed from {start} to {end}")


if __name__ == "__main__":
    main()

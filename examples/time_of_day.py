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

        try:
            hour = int(hour)
        except ValueError:
            raise ValueError("invalid hour") from None

        try:
            minute = int(minute)
        except ValueError:
            raise ValueError("invalid minute") from None

        return cls(hour, minute)


@cli
def main(time: Time):
    print("%d hours, %d minutes" % (time.hour, time.minute))


if __name__ == "__main__":
    main()

# $ python examples/time_of_day.py 12:34
# 12 hours, 34 minutes
#
# $ python examples/time_of_day.py 12
# failed to parse argument: time: Time (should have a colon)

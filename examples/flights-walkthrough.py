"""Reshape, join, bind and compare a handful of NYC flights."""
import pyarrow.compute as pc

from tidypyground.compute import FunctionCallExpression, MeanAggregation, RowCountMismatchError
from tidypyground.dataframe import AllExcept, Dataframe, bind_cols, bind_rows, col, lit

flights = Dataframe.from_pydict({
  "year": [2013] * 8,
  "month": [1, 1, 1, 1, 2, 2, 2, 2],
  "day": [1, 1, 2, 6, 1, 1, 3, 3],
  "carrier": ["UA", "AA", "ZZ", "UA", "B6", "AA", "UA", "ZZ"],
  "flight": [1545, 1141, 725, 1696, 507, 1141, 1714, 725],
  "arr_delay": [11.0, 20.0, None, -18.0, 33.0, -25.0, 12.0, 19.0],
  "time_hour": [
    "2013-01-01 05:00:00", "2013-01-01 05:00:00", "2013-01-02 06:00:00", "2013-01-06 06:00:00",
    "2013-02-01 07:00:00", "2013-02-01 08:00:00", "2013-02-03 09:00:00", "2013-02-03 09:00:00",
  ],
})
airlines = Dataframe.from_pydict({
  "carrier": ["AA", "B6", "DL", "UA"],
  "name": ["American Airlines Inc.", "JetBlue Airways", "Delta Air Lines Inc.", "United Air Lines Inc."],
})

# Reshaping
monthly_delays = flights \
  .filter(FunctionCallExpression(pc.is_valid, col("arr_delay"))) \
  .summarise(by=["month", "carrier"], avg_delay=MeanAggregation("arr_delay"))
print(monthly_delays)

wide_delays = monthly_delays.pivot_wider(names_from="carrier", values_from="avg_delay")
print(wide_delays)

long_delays = wide_delays.pivot_longer(AllExcept("month"), names_to="carrier", values_to="avg_delay")
print(long_delays)

print(flights.select("time_hour").head(5).separate("time_hour", into=["date", "time"], sep=" "))
print(flights.unite("date", "year", "month", "day", sep="-").select("date", "carrier", "flight").head())

# Joins
print(flights.inner_join(airlines, by="carrier").select("carrier", "flight", "name"))
print(
  flights.left_join(airlines, by="carrier")
  .replace_na({"name": "Unknown carrier"})
  .select("carrier", "name")
  .distinct()
)
print(flights.select("carrier", "flight").right_join(airlines, by="carrier"))
print(flights.select("carrier", "flight").full_join(airlines, by="carrier"))
print(flights.semi_join(airlines, by="carrier").select("carrier", "flight"))
print(flights.anti_join(airlines, by="carrier").select("carrier", "flight"))

# Binding
flights_jan = flights.filter(FunctionCallExpression(pc.equal, col("month"), lit(1)))
flights_feb = flights.filter(FunctionCallExpression(pc.equal, col("month"), lit(2)))
print(bind_rows(flights_jan, flights_feb).num_rows)

flights_jan_extra = flights_jan.mutate(extra_col=lit("extra"))
print(bind_rows(flights_jan, flights_jan_extra).select("flight", "extra_col"))

print(bind_cols(flights_jan.select("year", "month", "day"), flights_jan.select("carrier", "flight")))
try:
  bind_cols(flights_jan.select("year", "month", "day"), flights_jan.head(3).select("carrier")).collect()
except RowCountMismatchError as err:
  print("bind_cols failed:", err)

# Set operations
day = col("day")
flights1 = flights_jan.filter(FunctionCallExpression(pc.less_equal, day, lit(2))).select("month", "day", "carrier", "flight")
flights2 = flights_jan.filter(FunctionCallExpression(pc.greater_equal, day, lit(2))).select("month", "day", "carrier", "flight")
print(flights1.intersect(flights2))
print(flights1.union(flights2))
print(flights1.setdiff(flights2))
print(flights1.setequal(flights2))

"""GraphQL documents for the analytics and farming subgraphs.

Every paginated query takes `$first` and `$id_gt` and orders by `id` so the
caller can page with the last id of the previous batch.
"""

# Analytics subgraph

POOLS_QUERY = """
query pools($first: Int!, $id_gt: ID!) {
  pools(first: $first, where: { id_gt: $id_gt }, orderBy: id, orderDirection: asc) {
    id
    tick
    token0Price
    liquidity
    token0 {
      id
      name
      symbol
      decimals
      derivedMatic
    }
    token1 {
      id
      name
      symbol
      decimals
      derivedMatic
    }
  }
}
"""

POSITIONS_QUERY = """
query positions($first: Int!, $id_gt: ID!) {
  positions(
    first: $first
    where: { id_gt: $id_gt, liquidity_gt: 0 }
    orderBy: id
    orderDirection: asc
  ) {
    id
    owner
    liquidity
    tickLower {
      tickIdx
    }
    tickUpper {
      tickIdx
    }
    pool {
      id
      tick
      token0Price
      liquidity
      token0 {
        id
        decimals
        derivedMatic
      }
      token1 {
        id
        decimals
        derivedMatic
      }
    }
  }
}
"""

POOL_DAY_DATAS_QUERY = """
query poolDayDatas($first: Int!, $id_gt: ID!, $date: Int!) {
  poolDayDatas(
    first: $first
    where: { id_gt: $id_gt, date: $date }
    orderBy: id
    orderDirection: asc
  ) {
    id
    date
    feesToken0
    feesToken1
    pool {
      id
    }
  }
}
"""

TOKENS_QUERY = """
query tokens($addresses: [ID!]!) {
  tokens(where: { id_in: $addresses }) {
    id
    name
    symbol
    decimals
    derivedMatic
  }
}
"""

# Farming subgraph

ETERNAL_FARMINGS_QUERY = """
query eternalFarmings($first: Int!, $id_gt: ID!) {
  eternalFarmings(first: $first, where: { id_gt: $id_gt }, orderBy: id, orderDirection: asc) {
    id
    pool
    rewardToken
    bonusRewardToken
    rewardRate
    bonusRewardRate
  }
}
"""

DEPOSITS_QUERY = """
query deposits($first: Int!, $id_gt: ID!) {
  deposits(
    first: $first
    where: { id_gt: $id_gt, eternalFarming_not: null }
    orderBy: id
    orderDirection: asc
  ) {
    id
    eternalFarming
  }
}
"""
